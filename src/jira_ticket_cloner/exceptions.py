"""
Custom exception classes for the Jira ticket cloner.
"""

from __future__ import annotations


class CloneError(Exception):
    """Base exception for clone errors."""


class ConfigError(CloneError):
    """Raised when connection settings or target definitions are missing or invalid."""


class IssueLookupError(CloneError):
    """Raised when the source issue cannot be read."""


class FieldMetadataError(CloneError):
    """Raised when the create-field metadata of a project cannot be fetched."""


class CreateError(CloneError):
    """Raised when a clone cannot be created in a target project."""


class UpdateError(CloneError):
    """Raised when an existing issue cannot be updated."""


class AttachmentError(CloneError):
    """Raised when an attachment cannot be downloaded or uploaded."""


class LinkError(CloneError):
    """Raised when two issues cannot be linked."""


class LinkTypeNotFoundError(LinkError):
    """Raised when the requested issue link type does not exist in the tracker."""
