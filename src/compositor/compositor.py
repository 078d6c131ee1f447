"""Proposal document compositor.

Ties the page planner and edit sessions to the document and asset stores.
Every write goes through ``DocumentStore.update_document`` as one flat set of
top-level fields; nothing is retried here.
"""

import logging
from dataclasses import dataclass, field
from decimal import Decimal
from typing import Any, Dict, List, Mapping, Optional, Union
from uuid import uuid4

from src.common.config import CompositorConfig, load_config
from src.storage.base import AssetStore, DocumentStore

from .edit_session import EditSession, SessionState, build_site_updates, build_update_payload
from .errors import CompositorError, PriceValidationError, SessionStateError
from .models import ClientInfo, CustomPage, ProposalDocument, SiteRecord, to_decimal
from .page_layout import (
    PlannedPage,
    content_for_page,
    custom_page_for_page_number,
    page_price,
    parse_layout,
    plan_pages,
    total_pages,
)

logger = logging.getLogger(__name__)


@dataclass
class PriceEdit:
    """Initial values for editing the prices shown on one page."""

    page_number: int
    aggregate: Optional[str] = None
    per_site: Dict[str, str] = field(default_factory=dict)


def _parse_price(value: Any) -> Optional[Decimal]:
    if isinstance(value, bool):
        return None
    amount = to_decimal(value)
    if amount is None or amount < 0:
        return None
    return amount


class DocumentCompositor:
    """Composes, edits and persists proposal documents."""

    def __init__(
        self,
        document_store: DocumentStore,
        asset_store: Optional[AssetStore] = None,
        config: Optional[CompositorConfig] = None,
        actor_id: str = "system",
        actor_name: str = "System",
    ):
        """Initialize the compositor.

        Args:
            document_store: Store used to fetch and update proposals
            asset_store: Store used for logo and site image uploads
            config: Compositor configuration (defaults when omitted)
            actor_id: ID recorded on every update
            actor_name: Display name recorded on every update
        """
        self.document_store = document_store
        self.asset_store = asset_store
        self.config = config or CompositorConfig()
        self.actor_id = actor_id
        self.actor_name = actor_name
        self._sessions: Dict[str, EditSession] = {}

    @classmethod
    def from_config(
        cls,
        config: Optional[CompositorConfig] = None,
        actor_id: str = "system",
        actor_name: str = "System",
    ) -> "DocumentCompositor":
        """Build a compositor with stores created from configuration."""
        from src.storage.factory import StoreFactory

        config = config or load_config()
        document_store, asset_store = StoreFactory.create_stores(config)
        return cls(document_store, asset_store, config, actor_id, actor_name)

    def fetch(self, document_id: str) -> ProposalDocument:
        """Load a proposal; raises DocumentNotFoundError when it does not exist."""
        raw = self.document_store.fetch_document(document_id)
        document = ProposalDocument.from_dict(raw)
        logger.info(
            f"Fetched proposal {document_id} with {len(document.products)} sites "
            f"and {len(document.custom_pages)} custom pages"
        )
        return document

    def _update(self, document: ProposalDocument, fields: Dict[str, Any]) -> ProposalDocument:
        self.document_store.update_document(document.id, fields, self.actor_id, self.actor_name)
        merged = document.to_dict()
        merged.update(fields)
        return ProposalDocument.from_dict(merged)

    # Page planning

    def layout_of(self, document: ProposalDocument) -> int:
        return parse_layout(document.template_layout)

    def total_pages(self, document: ProposalDocument) -> int:
        return total_pages(document.products, document.custom_pages, self.layout_of(document))

    def content_for_page(self, document: ProposalDocument, page_number: int) -> List[SiteRecord]:
        return content_for_page(page_number, document.products, self.layout_of(document))

    def custom_page_for_page_number(
        self, document: ProposalDocument, page_number: int
    ) -> Optional[CustomPage]:
        return custom_page_for_page_number(
            page_number, document.products, document.custom_pages, self.layout_of(document)
        )

    def plan(self, document: ProposalDocument) -> List[PlannedPage]:
        return plan_pages(document.products, document.custom_pages, self.layout_of(document))

    def page_geometry(self, document: ProposalDocument) -> Dict[str, int]:
        width, height = self.config.page_geometry_for(
            document.template_size, document.template_orientation
        )
        return {"width": width, "height": height}

    # Edit sessions

    def active_session(self, document_id: str) -> Optional[EditSession]:
        session = self._sessions.get(document_id)
        if session is None or session.state not in (SessionState.EDITING, SessionState.COMMITTING):
            return None
        return session

    def enter_edit(self, document: ProposalDocument) -> EditSession:
        if self.active_session(document.id) is not None:
            raise SessionStateError(
                f"Proposal {document.id} already has an edit session", document_id=document.id
            )
        session = EditSession.start(document, self.config)
        self._sessions[document.id] = session
        return session

    def cancel_edit(self, session: EditSession) -> None:
        session.cancel()
        self._sessions.pop(session.document_id, None)

    def commit_edit(self, session: EditSession, document: ProposalDocument) -> ProposalDocument:
        """Decode the session's edits and write them to the document store.

        On failure the session goes back to editing with its edits intact and
        the error propagates.
        """
        if session.document_id != document.id:
            raise SessionStateError(
                f"Edit session belongs to {session.document_id}, not {document.id}",
                document_id=document.id,
            )
        session.mark_committing()
        try:
            sites = build_site_updates(session, document)
            payload = build_update_payload(session, document, sites)
            updated = self._update(document, payload)
        except Exception as e:
            logger.error(f"Commit failed for proposal {document.id}: {str(e)}")
            session.mark_commit_failed()
            raise

        session.mark_committed()
        self._sessions.pop(document.id, None)
        return updated

    def _require_asset_store(self) -> AssetStore:
        if self.asset_store is None:
            raise CompositorError("No asset store configured for uploads")
        return self.asset_store

    def swap_logo(
        self, session: EditSession, data: bytes, filename: str, content_type: Optional[str] = None
    ) -> str:
        """Upload a new company logo; it is saved with the next commit."""
        url = self._require_asset_store().upload_asset(
            data, f"proposals/{session.document_id}/logos", filename, content_type
        )
        session.set_pending_logo(url)
        return url

    def swap_site_image(
        self,
        session: EditSession,
        site_id: str,
        data: bytes,
        filename: str,
        content_type: Optional[str] = None,
    ) -> str:
        """Upload a replacement image for one site; it is saved with the next commit."""
        url = self._require_asset_store().upload_asset(
            data, f"proposals/{session.document_id}/sites/{site_id}", filename, content_type
        )
        session.set_pending_site_image(site_id, url)
        return url

    # Price-only editing

    def begin_price_edit(self, document: ProposalDocument, page_number: int) -> PriceEdit:
        sites = self.content_for_page(document, page_number)
        if self.layout_of(document) == 1:
            return PriceEdit(page_number=page_number, aggregate=str(page_price(sites)))
        return PriceEdit(
            page_number=page_number,
            per_site={site.id: str(site.price or 0) for site in sites},
        )

    def save_page_prices(
        self,
        document: ProposalDocument,
        page_number: int,
        price: Union[str, int, Decimal, None] = None,
        prices: Optional[Mapping[str, Union[str, int, Decimal]]] = None,
    ) -> ProposalDocument:
        """Write the prices edited for one page back into its sites.

        With one site per page a single ``price`` applies to the page's site.
        Otherwise ``prices`` maps site IDs to prices. Every value must be a
        non-negative number or nothing is written.

        Raises:
            PriceValidationError: If any entered price is negative or not a number
        """
        sites = self.content_for_page(document, page_number)
        if not sites:
            logger.warning(f"Page {page_number} of proposal {document.id} has no sites to price")
            return document

        page_ids = {site.id for site in sites}
        new_prices: Dict[str, Decimal] = {}
        if self.layout_of(document) == 1:
            amount = _parse_price(price)
            if amount is None:
                raise PriceValidationError(
                    "Please enter a valid price",
                    document_id=document.id,
                    invalid_values={"price": price},
                )
            new_prices = {site_id: amount for site_id in page_ids}
        else:
            entered = dict(prices or {})
            invalid = {site_id: value for site_id, value in entered.items() if _parse_price(value) is None}
            if invalid:
                raise PriceValidationError(
                    "Please enter valid prices for all products",
                    document_id=document.id,
                    invalid_values=invalid,
                )
            new_prices = {
                site_id: _parse_price(value) for site_id, value in entered.items() if site_id in page_ids
            }

        products = []
        for site in document.products:
            updated = site.copy()
            if site.id in new_prices:
                updated.price = new_prices[site.id]
            products.append(updated.to_dict())

        logger.info(f"Saving prices for page {page_number} of proposal {document.id}")
        return self._update(document, {"products": products})

    # Custom pages

    def add_custom_page(self, document: ProposalDocument) -> ProposalDocument:
        page = CustomPage(id=f"blank-{uuid4().hex[:12]}", position=self.total_pages(document))
        return self.save_custom_page(document, page)

    def save_custom_page(self, document: ProposalDocument, page: CustomPage) -> ProposalDocument:
        """Replace the custom page with the same ID, or append it."""
        pages = [p.to_dict() for p in document.custom_pages]
        for i, existing in enumerate(document.custom_pages):
            if existing.id == page.id:
                pages[i] = page.to_dict()
                break
        else:
            pages.append(page.to_dict())
        return self._update(document, {"custom_pages": pages})

    def delete_custom_page(self, document: ProposalDocument, page_id: str) -> ProposalDocument:
        pages = [p.to_dict() for p in document.custom_pages if p.id != page_id]
        if len(pages) == len(document.custom_pages):
            logger.warning(f"Custom page {page_id} not found in proposal {document.id}")
        return self._update(document, {"custom_pages": pages})

    # Sites, template and client

    def add_sites(self, document: ProposalDocument, sites: List[SiteRecord]) -> ProposalDocument:
        existing_ids = {site.id for site in document.products}
        products = [site.to_dict() for site in document.products]
        for site in sites:
            if site.id in existing_ids:
                logger.warning(f"Site {site.id} is already in proposal {document.id}, skipping")
                continue
            existing_ids.add(site.id)
            products.append(site.to_dict())
        return self._update(document, {"products": products})

    def remove_site(self, document: ProposalDocument, site_id: str) -> ProposalDocument:
        if document.site(site_id) is None:
            logger.warning(f"Site {site_id} not found in proposal {document.id}")
            return document
        products = [site.to_dict() for site in document.products if site.id != site_id]
        return self._update(document, {"products": products})

    def apply_template(
        self,
        document: ProposalDocument,
        size: str,
        orientation: str,
        layout: Union[int, str],
        background: str = "",
    ) -> ProposalDocument:
        fields = {
            "template_size": size,
            "template_orientation": orientation,
            "template_layout": str(parse_layout(layout)),
            "template_background": background or "",
        }
        return self._update(document, fields)

    def reassign_client(
        self, document: ProposalDocument, client: Union[ClientInfo, Dict[str, Any]]
    ) -> ProposalDocument:
        if isinstance(client, dict):
            client = ClientInfo.from_dict(client)
        return self._update(document, {"client": client.to_dict()})
