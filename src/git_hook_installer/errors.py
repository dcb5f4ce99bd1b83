"""Error kinds raised by discovery and hook mutation.

Everything derives from HookInstallerError so the CLI can turn any of them
into a one-line message. Filesystem errors on the mutation path are not
wrapped; they propagate as plain OSError.
"""

from __future__ import annotations


class HookInstallerError(Exception):
    """Base class for expected, user-reportable failures."""


class NotFoundError(HookInstallerError):
    """Something required (repo, manifest, hook, managed block) is absent."""


class RepositoryNotFoundError(NotFoundError):
    pass


class ManifestNotFoundError(NotFoundError):
    pass


class HookNotFoundError(NotFoundError):
    pass


class BlockNotFoundError(NotFoundError):
    pass


class MalformedError(HookInstallerError):
    """Input exists but cannot be interpreted. Never repaired automatically."""


class OutsideRepositoryError(HookInstallerError):
    pass


class AmbiguousManifestError(HookInstallerError):
    """Several manifest directories matched and no prompt is allowed."""


class ConsentRequiredError(HookInstallerError):
    """An unmanaged hook would be modified without permission."""


class AbortedError(HookInstallerError):
    """The user declined an interactive confirmation."""


class ResourceExhaustedError(HookInstallerError):
    """Too many backup or snapshot name collisions."""
