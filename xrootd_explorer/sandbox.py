"""
Path confinement for the explorer.

Resolves caller-supplied paths against a fixed base directory. Resolution is
pure string processing: it never touches the remote service, so a rejected
path can never cause a remote call.
"""

from .errors import AccessDenied


def normalize_base(base_directory: str) -> str:
    """Canonical form of a base directory: no trailing slash, "/" for the root."""
    return normalize(base_directory.replace("\\", "/"))


def normalize(path: str) -> str:
    """
    Collapse empty and "." segments and apply ".." segments.

    Popping past the root is a no-op, so normalization never fails; only the
    containment check in PathSandbox.resolve can reject a path.
    """
    segments: list[str] = []
    for part in path.split("/"):
        if not part or part == ".":
            continue
        if part == "..":
            if segments:
                segments.pop()
        else:
            segments.append(part)
    return "/" + "/".join(segments)


class PathSandbox:
    """Resolves logical paths and rejects anything outside the base directory."""

    def __init__(self, base_directory: str = "/"):
        self.base_directory = normalize_base(base_directory)

    def contains(self, path: str) -> bool:
        """True when path is the base directory or one of its descendants."""
        base = self.base_directory
        if base == "/":
            return path.startswith("/")
        return path == base or path.startswith(base + "/")

    def resolve(self, path: str) -> str:
        """
        Resolve a logical path to an absolute path inside the sandbox.

        Args:
            path: Absolute path, or a path relative to the base directory.

        Returns:
            Normalized absolute path within the base directory.

        Raises:
            AccessDenied: If the path is, or resolves to, a location outside
                the base directory.
        """
        if path.startswith("/"):
            if not self.contains(path):
                raise AccessDenied(path, self.base_directory)
            candidate = path
        else:
            candidate = f"{self.base_directory}/{path}"

        resolved = normalize(candidate)
        if not self.contains(resolved):
            raise AccessDenied(path, self.base_directory)
        return resolved

    @staticmethod
    def join(parent: str, name: str) -> str:
        """Child path of an already resolved directory."""
        if parent.endswith("/"):
            return parent + name
        return f"{parent}/{name}"
