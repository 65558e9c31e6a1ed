"""Kong declarative configuration tools: Terraform generation, Konnect compatibility checks, online validation and lint reporting."""

__version__ = "0.1.0"
__all__ = ["compatibility", "kong2tf", "lint", "terraform_resource", "validator"]