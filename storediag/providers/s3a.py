"""Diagnostics for S3 stores addressed through the S3A option namespace.

Options follow the ``fs.s3a.*`` keys of the Hadoop S3A connector, so a
configuration used by a Spark/Hadoop job can be checked as-is. Per-bucket
options (``fs.s3a.bucket.<bucket>.<option>``) are resolved into the global
keys before anything is reported, matching what the connector does when
it initializes.
"""

from typing import Sequence
from urllib.parse import urlsplit

from storediag.config import UNSET, Configuration, ConfigurationError
from storediag.models import EndpointSpec, OptionSpec, ProviderIdentity
from storediag.providers.base import DiagnosticsProvider

PREFIX = "fs.s3a."
BUCKET_PREFIX = "fs.s3a.bucket."

ACCESS_KEY = "fs.s3a.access.key"
SECRET_KEY = "fs.s3a.secret.key"
SESSION_TOKEN = "fs.s3a.session.token"
ENDPOINT = "fs.s3a.endpoint"
ENDPOINT_REGION = "fs.s3a.endpoint.region"
PATH_STYLE_ACCESS = "fs.s3a.path.style.access"
SECURE_CONNECTIONS = "fs.s3a.connection.ssl.enabled"
PROXY_HOST = "fs.s3a.proxy.host"
PROXY_PORT = "fs.s3a.proxy.port"
PROXY_USERNAME = "fs.s3a.proxy.username"
PROXY_PASSWORD = "fs.s3a.proxy.password"
STS_ENDPOINT = "fs.s3a.assumed.role.sts.endpoint"
MAX_ERROR_RETRIES = "fs.s3a.attempts.maximum"
ESTABLISH_TIMEOUT = "fs.s3a.connection.establish.timeout"
SOCKET_TIMEOUT = "fs.s3a.connection.timeout"

DEFAULT_ENDPOINT = "s3.amazonaws.com"

OPTIONS = (
    OptionSpec(ACCESS_KEY, True),
    OptionSpec(SECRET_KEY, True),
    OptionSpec(SESSION_TOKEN, True),
    OptionSpec("fs.s3a.aws.credentials.provider"),
    OptionSpec("fs.s3a.assumed.role.arn"),
    OptionSpec(STS_ENDPOINT),
    OptionSpec("fs.s3a.server-side-encryption-algorithm"),
    OptionSpec("fs.s3a.server-side-encryption.key", True),
    OptionSpec(ENDPOINT),
    OptionSpec(ENDPOINT_REGION),
    OptionSpec(PATH_STYLE_ACCESS),
    OptionSpec(SECURE_CONNECTIONS),
    OptionSpec(PROXY_HOST),
    OptionSpec(PROXY_PORT),
    OptionSpec(PROXY_USERNAME),
    OptionSpec(PROXY_PASSWORD, True),
    OptionSpec("fs.s3a.proxy.domain"),
    OptionSpec("fs.s3a.proxy.workstation"),
    OptionSpec("fs.s3a.signing-algorithm"),
    OptionSpec("fs.s3a.user.agent.prefix"),
    OptionSpec(MAX_ERROR_RETRIES),
    OptionSpec(ESTABLISH_TIMEOUT),
    OptionSpec(SOCKET_TIMEOUT),
    OptionSpec("fs.s3a.connection.maximum"),
    OptionSpec("fs.s3a.threads.max"),
    OptionSpec("fs.s3a.threads.keepalivetime"),
    OptionSpec("fs.s3a.max.total.tasks"),
    OptionSpec("fs.s3a.multipart.size"),
    OptionSpec("fs.s3a.fast.upload"),
    OptionSpec("fs.s3a.fast.upload.buffer"),
    OptionSpec("fs.s3a.fast.upload.active.blocks"),
    OptionSpec("fs.s3a.buffer.dir"),
    OptionSpec("fs.s3a.experimental.input.fadvise"),
    OptionSpec("fs.s3a.metadatastore.impl"),
    OptionSpec("fs.s3a.metadatastore.authoritative"),
    OptionSpec("fs.s3a.committer.name"),
    OptionSpec("fs.s3a.committer.magic.enabled"),
)

ENVIRONMENT = (
    OptionSpec("AWS_ACCESS_KEY_ID", True),
    OptionSpec("AWS_SECRET_ACCESS_KEY", True),
    OptionSpec("AWS_SESSION_TOKEN", True),
    OptionSpec("AWS_REGION"),
    OptionSpec("AWS_DEFAULT_REGION"),
    OptionSpec("AWS_PROFILE"),
    OptionSpec("AWS_CONFIG_FILE"),
    OptionSpec("AWS_SHARED_CREDENTIALS_FILE"),
)


def propagate_bucket_options(configuration: Configuration, bucket: str) -> Configuration:
    """Copy ``fs.s3a.bucket.<bucket>.<option>`` values to ``fs.s3a.<option>``.

    Per-bucket values replace global ones. Options of other buckets are
    left alone, as are per-bucket options which are themselves under
    ``bucket.``.

    Raises:
        ConfigurationError: If a per-bucket key names no option.
    """
    bucket_prefix = f"{BUCKET_PREFIX}{bucket}."
    overrides: dict[str, str] = {}
    for key, value in configuration.with_prefix(bucket_prefix):
        option = key[len(bucket_prefix):]
        if not option:
            raise ConfigurationError(f"Per-bucket option {key} has no option name")
        if option.startswith("bucket."):
            continue
        overrides[PREFIX + option] = value
    if not overrides:
        return configuration
    return configuration.with_overrides(overrides)


def _endpoint_spec(uri: str, connect: bool = True) -> EndpointSpec:
    """Build an EndpointSpec, validating its host and port."""
    spec = EndpointSpec(uri=uri, connect=connect)
    try:
        port = spec.port
    except ValueError as e:
        raise ConfigurationError(f"Invalid port in endpoint \"{uri}\": {e}") from e
    if not spec.host:
        raise ConfigurationError(f"No host in endpoint \"{uri}\"")
    if connect and port is None:
        raise ConfigurationError(f"No port or known protocol in endpoint \"{uri}\"")
    return spec


class S3ADiagnostics(DiagnosticsProvider):
    """Diagnostics for ``s3a://`` (and ``s3://``) buckets."""

    def identity(self) -> ProviderIdentity:
        return ProviderIdentity(
            name="S3A FileSystem connector",
            description="ASF Filesystem Connector to Amazon S3",
            homepage="https://hadoop.apache.org/docs/current/hadoop-aws/tools/hadoop-aws/index.html",
        )

    @property
    def bucket(self) -> str:
        return self.store_uri.host

    def option_specs(self) -> Sequence[OptionSpec]:
        return OPTIONS

    def environment_specs(self) -> Sequence[OptionSpec]:
        return ENVIRONMENT

    def patch_configuration(self, configuration: Configuration) -> Configuration:
        if not self.bucket:
            raise ConfigurationError(f"No bucket in store URI {self.store_uri}")
        return propagate_bucket_options(configuration, self.bucket)

    def endpoints_to_probe(self, configuration: Configuration) -> Sequence[EndpointSpec]:
        endpoints = [self._bucket_endpoint(configuration)]

        proxy_host = configuration.get_trimmed(PROXY_HOST)
        if proxy_host is not UNSET:
            proxy_port = configuration.get_int(PROXY_PORT, None)
            if proxy_port is None:
                secure = configuration.get_boolean(SECURE_CONNECTIONS, True)
                proxy_port = 443 if secure else 80
            endpoints.append(_endpoint_spec(f"http://{proxy_host}:{proxy_port}"))

        sts_endpoint = configuration.get_trimmed(STS_ENDPOINT)
        if sts_endpoint is not UNSET:
            if "://" not in sts_endpoint:
                sts_endpoint = f"https://{sts_endpoint}"
            endpoints.append(_endpoint_spec(sts_endpoint))

        return endpoints

    def _bucket_endpoint(self, configuration: Configuration) -> EndpointSpec:
        """The URL requests for this bucket go to."""
        endpoint = configuration.get_trimmed(ENDPOINT, DEFAULT_ENDPOINT)
        path_style = configuration.get_boolean(PATH_STYLE_ACCESS, False)

        if "://" in endpoint:
            try:
                parts = urlsplit(endpoint)
            except ValueError as e:
                raise ConfigurationError(f"Invalid endpoint \"{endpoint}\": {e}") from e
            if not parts.netloc:
                raise ConfigurationError(f"Invalid endpoint \"{endpoint}\"")
            scheme, host = parts.scheme, parts.netloc
        else:
            secure = configuration.get_boolean(SECURE_CONNECTIONS, True)
            scheme, host = ("https" if secure else "http"), endpoint.rstrip("/")

        if path_style:
            return _endpoint_spec(f"{scheme}://{host}/{self.bucket}")
        return _endpoint_spec(f"{scheme}://{self.bucket}.{host}/")
