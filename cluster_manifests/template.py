"""Library for rendering asset templates.

Templates are Jinja2 source rendered against a context of named fields. The only
functions visible to a template are the ones passed in explicitly, the default
table being `indent` and `add`:

```
data:
  ca.crt: |
    {{ indent(4, root_ca_cert) }}
```

Referencing a field that is not in the context is an error rather than an empty
substitution. Failures are raised as `TemplateError` so that the caller can
report them without aborting the process.
"""

from collections.abc import Callable, Mapping
from dataclasses import asdict, dataclass, field
import logging
from typing import Any

import jinja2
from jinja2.sandbox import SandboxedEnvironment

from .exceptions import TemplateError

__all__ = [
    "TemplateContext",
    "TemplateFunctions",
    "add",
    "default_functions",
    "indent",
    "render",
]

_LOGGER = logging.getLogger(__name__)

TemplateFunctions = Mapping[str, Callable[..., Any]]


def indent(indention: int, value: str) -> str:
    """Replace every newline in value with a newline followed by indention spaces."""
    return value.replace("\n", "\n" + " " * indention)


def add(i: int, j: int) -> int:
    """Return the sum of two integers."""
    return i + j


def default_functions() -> dict[str, Callable[..., Any]]:
    """Return a new copy of the default template function table."""
    return {
        "indent": indent,
        "add": add,
    }


@dataclass(frozen=True)
class TemplateContext:
    """Values available to the bootkube templates.

    Certificates embedded inline in YAML are raw PEM text while values placed in
    Secret data are standard base64.
    """

    etcd_ca_cert: str
    etcd_client_cert: str
    etcd_client_key: str
    kube_ca_cert: str
    kube_ca_key: str
    mcs_tls_cert: str
    mcs_tls_key: str
    pull_secret_base64: str
    root_ca_cert: str
    service_serving_ca_cert: str
    service_serving_ca_key: str
    cvo_cluster_id: str
    etcd_endpoint_hostnames: tuple[str, ...]
    etcd_endpoint_dns_suffix: str
    cloud_provider_config_base64: str = field(default="")
    """Cloud provider configuration, not yet produced by any asset."""

    def as_dict(self) -> dict[str, Any]:
        """Return the mapping of field names to values passed to the renderer."""
        return asdict(self)


def _environment(functions: TemplateFunctions) -> SandboxedEnvironment:
    env = SandboxedEnvironment(
        undefined=jinja2.StrictUndefined,
        keep_trailing_newline=True,
        autoescape=False,
    )
    # Only the explicit function table is visible, no builtin globals.
    env.globals.clear()
    env.globals.update(functions)
    return env


def render(
    name: str,
    template: bytes,
    context: Mapping[str, Any],
    functions: TemplateFunctions | None = None,
) -> bytes:
    """Render the template bytes against the context.

    Args:
        name: The name of the template, used when reporting errors.
        template: The utf-8 encoded template source.
        context: The named fields available to the template.
        functions: The functions available to the template, or the default
            table when not specified.

    Raises:
        TemplateError: If the template can't be decoded, parsed, or executed.
    """
    if functions is None:
        functions = default_functions()
    _LOGGER.debug("Rendering template %s", name)
    try:
        source = template.decode("utf-8")
    except UnicodeDecodeError as err:
        raise TemplateError(name, err) from err
    env = _environment(functions)
    try:
        result = env.from_string(source).render(dict(context))
    except jinja2.TemplateError as err:
        raise TemplateError(name, err) from err
    except Exception as err:
        # Raised from inside a template function or by runaway recursion,
        # e.g. add("a", 1) or a macro that calls itself.
        raise TemplateError(name, err) from err
    return result.encode("utf-8")
