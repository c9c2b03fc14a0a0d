"""Connection and request option models.

Options are fixed pydantic structures with explicit defaults. Unknown keys are
rejected with :class:`~FleetHTTP.errors.UnrecognizedOption` instead of being
silently ignored, so a misspelt option fails before any network activity.
"""

from __future__ import annotations

import logging
from typing import Any, Mapping, Optional, Type, TypeVar, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator

from FleetHTTP.errors import UnrecognizedOption
from FleetHTTP.network.policy import (
    DEFAULT_REDIRECT_LIMIT,
    DEFAULT_RETRY_LIMIT,
    DEFAULT_USE_SSL,
)

logger = logging.getLogger(__name__)

OptionsT = TypeVar("OptionsT", bound=BaseModel)


class BasicAuth(BaseModel):
    """Credentials injected as an ``Authorization: Basic`` header."""

    model_config = ConfigDict(extra="forbid", frozen=True)

    user: str
    password: str

    def __repr__(self) -> str:
        return f"BasicAuth(user={self.user!r}, password='***')"


class ConnectionOptions(BaseModel):
    """Options fixed for the lifetime of a :class:`Connection`."""

    model_config = ConfigDict(extra="forbid", frozen=True, arbitrary_types_allowed=True)

    use_ssl: bool = DEFAULT_USE_SSL
    verify: Optional[Any] = Field(
        default=None,
        description="Verifier collaborator; a default SSLVerifier is used when omitted",
    )
    redirect_limit: int = Field(default=DEFAULT_REDIRECT_LIMIT, ge=0)
    retry_limit: int = Field(default=DEFAULT_RETRY_LIMIT, ge=0)

    @field_validator("verify")
    @classmethod
    def validate_verifier(cls, value: Any) -> Any:
        """Require the two verifier queries the TLS diagnostics rely on."""
        if value is None:
            return value
        for attr in ("peer_certificates", "verification_errors"):
            if not callable(getattr(value, attr, None)):
                raise ValueError(f"verify must provide a callable {attr}()")
        return value


class RequestOptions(BaseModel):
    """Options scoped to one facade call."""

    model_config = ConfigDict(extra="forbid", frozen=True)

    basic_auth: Optional[BasicAuth] = None
    idempotent: bool = False


def validate_options(
    model: Type[OptionsT],
    options: Union[OptionsT, Mapping[str, Any], None],
) -> OptionsT:
    """Coerce ``options`` into ``model``, rejecting unrecognised keys.

    Args:
        model: Options model class to build
        options: Existing model instance, plain mapping, or ``None`` for defaults

    Returns:
        Validated options instance

    Raises:
        UnrecognizedOption: If ``options`` carries keys ``model`` does not define
        pydantic.ValidationError: If a recognised option has an invalid value
    """
    if options is None:
        return model()
    if isinstance(options, model):
        return options

    unknown = set(options) - set(model.model_fields)
    if unknown:
        logger.debug(
            "Rejecting unrecognized options",
            extra={"options_model": model.__name__, "unknown": sorted(unknown)},
        )
        raise UnrecognizedOption(sorted(unknown))
    return model(**dict(options))


__all__ = [
    "BasicAuth",
    "ConnectionOptions",
    "RequestOptions",
    "validate_options",
]
