"""Store URI value type.

A store URI names the filesystem to diagnose: its scheme selects the
diagnostics provider and filesystem implementation, the authority is the
bucket/container/host, and the path is the location inside the store.
"""

import os
import posixpath
from dataclasses import dataclass
from urllib.parse import urlsplit

LOCAL_SCHEMES = ("", "file")


@dataclass(frozen=True)
class StoreURI:
    """Immutable scheme/authority/path triple."""

    scheme: str
    authority: str
    path: str = "/"

    @classmethod
    def parse(cls, uri: str) -> "StoreURI":
        """Parse a URI string such as ``s3a://bucket/data`` or ``/tmp/x``.

        Raises:
            ValueError: If the URI is empty.
        """
        if not uri or not uri.strip():
            raise ValueError("Store URI must not be empty")

        parts = urlsplit(uri.strip())
        scheme = parts.scheme.lower()
        path = parts.path or "/"
        if not path.startswith("/"):
            # local paths are relative to the working directory
            path = os.path.abspath(path) if scheme in LOCAL_SCHEMES else "/" + path
        return cls(scheme=scheme, authority=parts.netloc, path=path)

    @property
    def host(self) -> str:
        """Authority without any user info or port; the bucket for object stores."""
        authority = self.authority.rsplit("@", 1)[-1]
        return authority.split(":", 1)[0]

    @property
    def root(self) -> "StoreURI":
        return StoreURI(self.scheme, self.authority, "/")

    def child(self, name: str) -> "StoreURI":
        """Return the URI of ``name`` directly under this path."""
        return StoreURI(self.scheme, self.authority, posixpath.join(self.path, name))

    def __str__(self) -> str:
        if not self.scheme:
            return self.path
        return f"{self.scheme}://{self.authority}{self.path}"
