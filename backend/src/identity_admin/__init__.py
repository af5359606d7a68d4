"""Identity administration Lambdas for Cognito user pools."""

__version__ = "1.0.0"
