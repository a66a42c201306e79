"""S3 filesystem implementation on boto3.

Creates boto3 S3 clients from the ``fs.s3a.*`` options of a (patched)
configuration: endpoint, credentials, region, addressing style, proxy,
timeouts and retry count. Directories are represented as zero-byte
``key/`` marker objects, as the S3A connector does.
"""

import io
from contextlib import contextmanager
from typing import Any, BinaryIO, Iterator, Optional

import boto3
from botocore.client import Config
from botocore.exceptions import BotoCoreError, ClientError

from storediag.config import UNSET, Configuration
from storediag.filesystem.base import FileStatus, FileSystem, FileSystemError
from storediag.providers.s3a import (
    ACCESS_KEY,
    ENDPOINT,
    ENDPOINT_REGION,
    ESTABLISH_TIMEOUT,
    MAX_ERROR_RETRIES,
    PATH_STYLE_ACCESS,
    PROXY_HOST,
    PROXY_PASSWORD,
    PROXY_PORT,
    PROXY_USERNAME,
    SECRET_KEY,
    SECURE_CONNECTIONS,
    SESSION_TOKEN,
    SOCKET_TIMEOUT,
)
from storediag.uri import StoreURI

# Error codes S3 uses for a missing object
NOT_FOUND_CODES = {"404", "NoSuchKey", "NotFound"}

# Maximum keys per DeleteObjects request
DELETE_BATCH_SIZE = 1000


def _optional(configuration: Configuration, key: str) -> Optional[str]:
    value = configuration.get_trimmed(key)
    return None if value is UNSET else value


def _millis_to_seconds(configuration: Configuration, key: str) -> Optional[float]:
    millis = configuration.get_int(key, None)
    return None if millis is None else millis / 1000.0


def build_s3_client(configuration: Configuration):
    """Build a boto3 S3 client for the given configuration.

    Options which are unset are left to boto3's own defaults and
    credential chain.

    Raises:
        ConfigurationError: If a boolean or numeric option is malformed.
    """
    secure = configuration.get_boolean(SECURE_CONNECTIONS, True)
    path_style = configuration.get_boolean(PATH_STYLE_ACCESS, False)

    config_args: dict[str, Any] = {
        "signature_version": "s3v4",
        "s3": {"addressing_style": "path" if path_style else "auto"},
    }

    connect_timeout = _millis_to_seconds(configuration, ESTABLISH_TIMEOUT)
    if connect_timeout is not None:
        config_args["connect_timeout"] = connect_timeout
    read_timeout = _millis_to_seconds(configuration, SOCKET_TIMEOUT)
    if read_timeout is not None:
        config_args["read_timeout"] = read_timeout
    max_attempts = configuration.get_int(MAX_ERROR_RETRIES, None)
    if max_attempts is not None:
        config_args["retries"] = {"max_attempts": max_attempts}

    proxy_host = _optional(configuration, PROXY_HOST)
    if proxy_host:
        proxy_port = configuration.get_int(PROXY_PORT, 443 if secure else 80)
        credentials = ""
        username = _optional(configuration, PROXY_USERNAME)
        if username:
            credentials = f"{username}:{_optional(configuration, PROXY_PASSWORD) or ''}@"
        proxy_url = f"http://{credentials}{proxy_host}:{proxy_port}"
        config_args["proxies"] = {"http": proxy_url, "https": proxy_url}

    endpoint_url = _optional(configuration, ENDPOINT)
    if endpoint_url and "://" not in endpoint_url:
        endpoint_url = f"{'https' if secure else 'http'}://{endpoint_url}"

    return boto3.client(
        "s3",
        endpoint_url=endpoint_url,
        aws_access_key_id=_optional(configuration, ACCESS_KEY),
        aws_secret_access_key=_optional(configuration, SECRET_KEY),
        aws_session_token=_optional(configuration, SESSION_TOKEN),
        region_name=_optional(configuration, ENDPOINT_REGION),
        use_ssl=secure,
        config=Config(**config_args),
    )


def _is_not_found(error: ClientError) -> bool:
    return error.response.get("Error", {}).get("Code", "") in NOT_FOUND_CODES


@contextmanager
def _translate_errors(operation: str, path: str):
    """Turn botocore exceptions into OSError subclasses."""
    try:
        yield
    except ClientError as e:
        if _is_not_found(e):
            raise FileNotFoundError(f"{operation} {path}: {e}") from e
        raise FileSystemError(f"{operation} {path}: {e}") from e
    except BotoCoreError as e:
        raise FileSystemError(f"{operation} {path}: {e}") from e


class _S3OutputStream(io.BytesIO):
    """Buffers written data and uploads it as one object on close."""

    def __init__(self, filesystem: "S3FileSystem", path: str):
        super().__init__()
        self._filesystem = filesystem
        self._path = path

    def close(self) -> None:
        if self.closed:
            return
        data = self.getvalue()
        try:
            self._filesystem._put(self._path, data)
        finally:
            super().close()


class S3FileSystem(FileSystem):
    """FileSystem over one S3 bucket."""

    def __init__(
        self,
        uri: StoreURI,
        configuration: Optional[Configuration] = None,
        client: Optional[Any] = None,
    ):
        super().__init__(uri, configuration)
        self.bucket = uri.host
        if not self.bucket:
            raise FileSystemError(f"No bucket in {uri}")
        if client is None:
            try:
                client = build_s3_client(self.configuration)
            except (BotoCoreError, ValueError) as e:
                raise FileSystemError(f"Cannot create S3 client for {uri}: {e}") from e
        self.client = client

    @staticmethod
    def _key(path: str) -> str:
        return path.strip("/")

    def _dir_prefix(self, path: str) -> str:
        key = self._key(path)
        return f"{key}/" if key else ""

    def _exists(self, key: str) -> bool:
        try:
            self.client.head_object(Bucket=self.bucket, Key=key)
        except ClientError as e:
            if _is_not_found(e):
                return False
            raise
        return True

    def _put(self, path: str, data: bytes) -> None:
        with _translate_errors("create", path):
            self.client.put_object(Bucket=self.bucket, Key=self._key(path), Body=data)

    def _keys_under(self, prefix: str) -> Iterator[str]:
        paginator = self.client.get_paginator("list_objects_v2")
        for page in paginator.paginate(Bucket=self.bucket, Prefix=prefix):
            for obj in page.get("Contents", []):
                yield obj["Key"]

    def list(self, path: str) -> Iterator[FileStatus]:
        prefix = self._dir_prefix(path)
        paginator = self.client.get_paginator("list_objects_v2")
        with _translate_errors("list", path):
            for page in paginator.paginate(Bucket=self.bucket, Prefix=prefix, Delimiter="/"):
                for common_prefix in page.get("CommonPrefixes", []):
                    yield FileStatus(
                        path="/" + common_prefix["Prefix"].rstrip("/"),
                        is_directory=True,
                    )
                for obj in page.get("Contents", []):
                    if obj["Key"] == prefix:
                        continue
                    yield FileStatus(path="/" + obj["Key"], size=obj.get("Size", 0))

    def list_files(self, path: str, recursive: bool = True) -> Iterator[FileStatus]:
        if not recursive:
            for status in self.list(path):
                if not status.is_directory:
                    yield status
            return

        paginator = self.client.get_paginator("list_objects_v2")
        with _translate_errors("list", path):
            for page in paginator.paginate(Bucket=self.bucket, Prefix=self._dir_prefix(path)):
                for obj in page.get("Contents", []):
                    if obj["Key"].endswith("/"):
                        continue
                    yield FileStatus(path="/" + obj["Key"], size=obj.get("Size", 0))

    def mkdirs(self, path: str) -> bool:
        prefix = self._dir_prefix(path)
        if prefix:
            with _translate_errors("mkdirs", path):
                self.client.put_object(Bucket=self.bucket, Key=prefix, Body=b"")
        return True

    def create(self, path: str, overwrite: bool = True) -> BinaryIO:
        if not overwrite:
            with _translate_errors("create", path):
                if self._exists(self._key(path)):
                    raise FileExistsError(f"File exists: {self.uri.root}{self._key(path)}")
        return _S3OutputStream(self, path)

    def open(self, path: str) -> BinaryIO:
        with _translate_errors("open", path):
            response = self.client.get_object(Bucket=self.bucket, Key=self._key(path))
            body = response["Body"]
            try:
                data = body.read()
            finally:
                body.close()
        return io.BytesIO(data)

    def delete(self, path: str, recursive: bool = False) -> bool:
        key = self._key(path)
        if not key:
            raise FileSystemError(f"Refusing to delete the root of bucket {self.bucket}")

        with _translate_errors("delete", path):
            if self._exists(key):
                self.client.delete_object(Bucket=self.bucket, Key=key)
                return True

            prefix = f"{key}/"
            keys = list(self._keys_under(prefix))
            if not keys:
                return False
            if not recursive and any(k != prefix for k in keys):
                raise FileSystemError(f"Directory {path} is not empty")

            for start in range(0, len(keys), DELETE_BATCH_SIZE):
                batch = keys[start:start + DELETE_BATCH_SIZE]
                response = self.client.delete_objects(
                    Bucket=self.bucket,
                    Delete={"Objects": [{"Key": k} for k in batch], "Quiet": True},
                )
                errors = response.get("Errors", [])
                if errors:
                    first = errors[0]
                    raise FileSystemError(
                        f"Failed to delete {len(errors)} objects under {path}: "
                        f"{first.get('Key')}: {first.get('Message', first.get('Code'))}"
                    )
        return True
