from .static_token_authorizer import StaticTokenAuthorizer

__all__ = ["StaticTokenAuthorizer"]
