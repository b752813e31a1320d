"""Well-known variable names read and written by the engine."""

ACTION_NAME = "Convoy.Action.Name"

SUBSTITUTE_IN_FILES_ENABLED = "Convoy.Action.SubstituteInFiles.Enabled"
SUBSTITUTE_IN_FILES_TARGETS = "Convoy.Action.Package.SubstituteInFilesTargets"


class Aws:
    S3_BUCKET_NAME = "Convoy.Action.Aws.S3.BucketName"
    S3_TARGET_MODE = "Convoy.Action.Aws.S3.TargetMode"
    S3_PACKAGE_OPTIONS = "Convoy.Action.Aws.S3.PackageOptions"
    S3_FILE_SELECTIONS = "Convoy.Action.Aws.S3.FileSelections"

    STACK_NAME = "Convoy.Action.Aws.CloudFormationStackName"
    WAIT_FOR_COMPLETION = "Convoy.Action.Aws.WaitForCompletion"
    DISABLE_ROLLBACK = "Convoy.Action.Aws.DisableRollback"
    IAM_CAPABILITIES = "Convoy.Action.Aws.IamCapabilities"
    TEMPLATE_FILE = "Convoy.Action.Aws.TemplateFile"
    TEMPLATE_PARAMETERS_FILE = "Convoy.Action.Aws.TemplateParametersFile"


def output_variable(action_name: str, name: str) -> str:
    """Fully scoped name of an output variable published by an action."""
    return f"Convoy.Action[{action_name}].Output.{name}"
