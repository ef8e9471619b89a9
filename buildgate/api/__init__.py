"""API boundary: presenter and status-coded resource gateway."""

from buildgate.api.gateway import ResourceGateway, Response, error_response
from buildgate.api.presenter import Link, Presenter

__all__ = ["ResourceGateway", "Response", "error_response", "Presenter", "Link"]
