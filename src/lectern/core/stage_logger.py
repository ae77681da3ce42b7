"""
Stage-tagged logging for pipeline runs.
"""

import logging
from typing import Any, MutableMapping, Optional, Tuple


class StageLoggerAdapter(logging.LoggerAdapter):
    """
    Logger adapter tagging every record with the pipeline stage and document.

    Records carry ``stage`` and ``document_id`` attributes for structured
    handlers and the message is prefixed with ``[stage:document_id]``.
    """

    def process(
        self, msg: Any, kwargs: MutableMapping[str, Any]
    ) -> Tuple[Any, MutableMapping[str, Any]]:
        extra = dict(self.extra or {})
        extra.update(kwargs.get("extra") or {})
        kwargs["extra"] = extra
        return f"[{extra.get('stage')}:{extra.get('document_id')}] {msg}", kwargs


def get_stage_logger(
    name: str, stage: str, document_id: Optional[str] = None
) -> StageLoggerAdapter:
    """
    Get a logger for one pipeline stage.

    Args:
        name: Logger name, usually ``__name__``
        stage: Stage name such as ``extraction`` or ``quality_gate``
        document_id: Identifier of the document being processed

    Returns:
        Adapter that tags records with the stage and document id
    """
    return StageLoggerAdapter(
        logging.getLogger(name), {"stage": stage, "document_id": document_id or "-"}
    )
