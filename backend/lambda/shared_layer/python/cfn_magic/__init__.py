"""cfn_magic - Shared runtime for CloudFormation custom-resource Lambdas.

Provides:
    - CloudFormation event validation and parsing
    - Lifecycle dispatch (Create / Update / Delete) over a kind registry
    - Result delivery to the pre-signed ResponseURL with bounded retry
    - Named-collection reconciliation helpers
    - Resource kinds under cfn_magic.resources
"""

__version__ = "1.0.0"
