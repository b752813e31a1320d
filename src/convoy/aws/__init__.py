"""AWS integrations: client factory, error classification, CloudFormation and S3."""
