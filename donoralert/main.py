from donoralert.api.main import app

__all__ = ["app"]
