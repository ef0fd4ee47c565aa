"""Text Variable Handler — rewrites one `$name: value;` declaration in a model resource.

Invariants:
    - Sequence is fetch → transform → delete → put; the resource is deleted
      before the new content is put (the platform rejects put over an existing file)
    - The whole resource is read into memory, transformed by core.scss_patch, then
      written back in one call
    - Failures carry their stage: fetch/delete/put (FileIOError from ModelSession),
      transform (PatchError)
"""

import logging

from appwizard.core.errors import ErrorContext, PatchError
from appwizard.core.scss_patch import PatchOutcome, set_scss_variable
from appwizard.schemas.pipeline import ChangeDescriptor
from appwizard.services.model_session import ModelSession

logger = logging.getLogger(__name__)

ENCODING = "utf-8"


class TextVariablePatcher:
    """Applies CSS_Variable_Change descriptors through an open ModelSession."""

    def __init__(self, session: ModelSession, context: ErrorContext | None = None):
        self.session = session
        self._context = context or ErrorContext()

    async def apply(self, change: ChangeDescriptor) -> PatchOutcome:
        location = change.location
        name = change.item_name

        logger.info(f"Fetch {location}", extra={"stage": "fetch", "location": location})
        raw = await self.session.get_file(location)

        outcome = self._transform(raw, name, change.new_value)
        logger.info(
            f"Set ${name} in {location}: {outcome.lines_replaced} of "
            f"{outcome.lines_processed} lines replaced",
            extra={
                "stage": "transform", "location": location, "item_name": name,
                "lines_processed": outcome.lines_processed,
                "lines_replaced": outcome.lines_replaced,
            },
        )
        if outcome.lines_replaced == 0:
            logger.warning(f"Variable ${name} not declared in {location}")

        await self.session.delete_file(location)
        await self.session.put_file(outcome.content.encode(ENCODING), location)
        return outcome

    def _transform(self, raw: bytes, name: str, new_value: str) -> PatchOutcome:
        try:
            text = raw.decode(ENCODING)
        except UnicodeDecodeError as e:
            logger.error(f"Cannot decode resource while setting ${name}: {e}")
            raise PatchError(
                f"Error setting variable {name} to {new_value}: "
                f"resource is not valid {ENCODING}",
                name, self._context,
            ) from e
        return set_scss_variable(text, name, new_value)
