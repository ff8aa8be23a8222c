"""Error taxonomy for version resolution and dynamic installation.

Every error carries the context (platform, version, url, paths) needed to
report it verbatim to the user.
"""


class ProvisioningError(Exception):
    """Base class for all errors raised by sdkprovisioner."""


class ConfigError(ProvisioningError):
    """Required configuration is missing, or a remote default is empty."""

    def __init__(self, message, platform=None, url=None):
        super().__init__(message)
        self.platform = platform
        self.url = url


class RemoteUnavailable(ProvisioningError):
    """Remote SDK storage could not be reached or returned unusable content."""

    def __init__(self, message, url=None, status_code=None, transient=True):
        super().__init__(message)
        self.url = url
        self.status_code = status_code
        self.transient = transient


class OperationCancelled(RemoteUnavailable):
    """A network operation was aborted through the cancellation event."""

    def __init__(self, url=None):
        super().__init__(f"Request to {url} was cancelled.", url=url, transient=False)


class UnsupportedVersionError(ProvisioningError):
    def __init__(self, platform, version):
        super().__init__(f"Platform '{platform}' version '{version}' is unsupported.")
        self.platform = platform
        self.version = version


class InstallError(ProvisioningError):
    """Download, extraction or publish of an SDK failed. No sentinel was written."""

    def __init__(self, message, platform=None, version=None):
        super().__init__(message)
        self.platform = platform
        self.version = version


class LinkError(ProvisioningError):
    """A version link could not be created, or conflicts with an existing entry."""

    def __init__(self, link_path, existing_target, requested_target, reason=None):
        if reason is None:
            reason = f"it already exists and points to '{existing_target}'"
        super().__init__(f"Cannot link '{link_path}' to '{requested_target}': {reason}.")
        self.link_path = link_path
        self.existing_target = existing_target
        self.requested_target = requested_target


class ManifestError(ProvisioningError):
    """The build manifest could not be read or appended to."""

    def __init__(self, message, manifest_path=None):
        super().__init__(message)
        self.manifest_path = manifest_path
