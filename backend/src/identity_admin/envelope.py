"""Response envelope construction and encoding.

Every operation funnels through :func:`run_operation`, which runs the
operation body, and turns either its result items or the ``AppError`` it
raised into an envelope via :func:`make_envelope`.
"""

from __future__ import annotations

from typing import Any
from typing import Callable
from typing import Iterable
from typing import Mapping
from typing import Optional
from typing import TypeVar

from pydantic import ValidationError as PydanticValidationError
from pydantic_core import PydanticSerializationError

from identity_admin.api.schemas import Envelope
from identity_admin.config import Settings
from identity_admin.exceptions import AppError
from identity_admin.exceptions import BackendError
from identity_admin.exceptions import EncodingError
from identity_admin.exceptions import ErrorKind
from identity_admin.exceptions import STATUS_CODES
from identity_admin.utils.logging import get_logger

logger = get_logger(__name__)

E = TypeVar("E", bound=Envelope)

OK_MESSAGE = "Ok"
ENCODING_FAILURE_BODY = "Unable to construct JSON"


def make_envelope(
    envelope_type: type[E],
    operation: str,
    error: Optional[AppError] = None,
    items: Iterable[Any] = (),
    status_codes: Optional[Mapping[ErrorKind, int]] = None,
) -> E:
    """Build the envelope for one operation outcome.

    Args:
        envelope_type: Envelope class matching the operation's item type.
        operation: Operation name, used for logging only.
        error: The failure, or None on success.
        items: Result items; ignored on failure.
        status_codes: Error-kind to status table. Defaults to STATUS_CODES.

    Returns:
        200/"Ok" with the items on success, otherwise the error's status
        and message with no items.
    """
    if error is None:
        return envelope_type(
            response_code=200,
            message=OK_MESSAGE,
            **{envelope_type.items_field: list(items)},
        )

    codes = status_codes or STATUS_CODES
    status_code = codes[error.kind]
    logger.warning(
        f"{operation} failed: {error.message}",
        extra={"kind": error.kind.value, "status_code": status_code},
    )
    return envelope_type(response_code=status_code, message=error.message)


def run_operation(
    envelope_type: type[E],
    operation: str,
    action: Callable[[], Iterable[Any]],
    settings: Optional[Settings] = None,
) -> E:
    """Run *action* and wrap its outcome in an envelope.

    ``action`` validates its input, calls the collaborators and returns
    the result items. Any ``AppError`` it raises becomes a failure
    envelope; anything else is logged and reported as a backend failure.
    """
    status_codes = settings.status_codes() if settings else None
    try:
        items = action()
    except AppError as exc:
        return make_envelope(
            envelope_type, operation, error=exc, status_codes=status_codes
        )
    except Exception:
        logger.exception(f"Unexpected error in {operation}")
        return make_envelope(
            envelope_type,
            operation,
            error=BackendError("Internal server error"),
            status_codes=status_codes,
        )
    return make_envelope(envelope_type, operation, items=items)


def encode_envelope(envelope: Envelope) -> str:
    """Serialize an envelope to JSON.

    Unset optional record fields are omitted.

    Raises:
        EncodingError: Carrying the fixed sentinel body as its message.
    """
    try:
        return envelope.model_dump_json(exclude_none=True)
    except (PydanticSerializationError, TypeError, ValueError) as exc:
        logger.exception("Failed to encode response envelope")
        raise EncodingError(ENCODING_FAILURE_BODY) from exc


def decode_envelope(envelope_type: type[E], text: str) -> E:
    """Parse JSON produced by :func:`encode_envelope`.

    Raises:
        ValueError: If *text* is not a valid envelope of that type.
    """
    try:
        return envelope_type.model_validate_json(text)
    except PydanticValidationError as exc:
        raise ValueError(f"Invalid {envelope_type.__name__}: {exc}") from exc
