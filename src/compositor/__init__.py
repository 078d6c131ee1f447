"""Proposal document compositor: page planning, field codecs and edit sessions."""

from .compositor import DocumentCompositor, PriceEdit
from .edit_session import EditSession, SessionState, build_site_updates, build_update_payload
from .errors import (
    CompositorError,
    DocumentNotFoundError,
    InvalidLayoutError,
    PersistenceError,
    PriceValidationError,
    SessionStateError,
)
from .field_codec import FailurePolicy, FieldKind, Measure, decode, encode
from .models import CustomPage, Dimension, ProposalDocument, SiteRecord
from .page_layout import (
    PageKind,
    content_for_page,
    custom_page_for_page_number,
    plan_pages,
    total_pages,
)

__all__ = [
    "DocumentCompositor",
    "PriceEdit",
    "EditSession",
    "SessionState",
    "build_site_updates",
    "build_update_payload",
    "CompositorError",
    "DocumentNotFoundError",
    "InvalidLayoutError",
    "PersistenceError",
    "PriceValidationError",
    "SessionStateError",
    "FailurePolicy",
    "FieldKind",
    "Measure",
    "encode",
    "decode",
    "CustomPage",
    "Dimension",
    "ProposalDocument",
    "SiteRecord",
    "PageKind",
    "total_pages",
    "content_for_page",
    "custom_page_for_page_number",
    "plan_pages",
]
