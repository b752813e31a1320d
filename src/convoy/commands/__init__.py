"""Commands: fixed convention pipelines for each deployment kind."""

from .base import Command
from .deploy_cloudformation import DeployCloudFormationCommand
from .upload_s3 import UploadS3Command

COMMANDS = {
    DeployCloudFormationCommand.name: DeployCloudFormationCommand,
    UploadS3Command.name: UploadS3Command,
}

__all__ = ["COMMANDS", "Command", "DeployCloudFormationCommand", "UploadS3Command"]
