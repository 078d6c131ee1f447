"""Editable working copy of a proposal document.

An ``EditSession`` holds the display strings a user edits in place, plus the
structured snapshot taken when editing started. Nothing on the document
changes until the session is committed; ``build_site_updates`` turns the
edited strings back into ``SiteRecord`` values using each field's codec and
failure policy.
"""

import copy
import logging
from dataclasses import asdict, dataclass, field, replace
from enum import Enum
from typing import Any, Dict, List, Optional, Tuple

from src.common.config import CompositorConfig

from .errors import SessionStateError
from .field_codec import FailurePolicy, FieldCodec, Measure, build_site_codecs
from .interaction import LogoInteraction
from .models import (
    FIELD_VISIBILITY_KEYS,
    AdditionalSpec,
    ContactInfo,
    LocationVisibility,
    LogoPlacement,
    ProposalDocument,
    SiteRecord,
)

logger = logging.getLogger(__name__)

DOCUMENT_FIELDS = (
    "title",
    "proposal_title",
    "proposal_message",
    "contact_info",
    "company_name",
    "prepared_by_name",
    "prepared_by_company",
    "client_contact_person",
    "client_company",
)


class SessionState(str, Enum):
    EDITING = "editing"
    COMMITTING = "committing"
    COMMITTED = "committed"
    CANCELLED = "cancelled"


@dataclass
class DocumentEdits:
    """Document-level attributes editable alongside the sites."""

    title: str = ""
    proposal_title: str = ""
    proposal_message: str = ""
    contact_info: ContactInfo = field(default_factory=ContactInfo)
    company_name: str = ""
    prepared_by_name: str = ""
    prepared_by_company: str = ""
    client_contact_person: str = ""
    client_company: str = ""

    @classmethod
    def from_document(cls, document: ProposalDocument) -> "DocumentEdits":
        return cls(
            title=document.title,
            proposal_title=document.proposal_title,
            proposal_message=document.proposal_message,
            contact_info=replace(document.contact_info),
            company_name=document.company_name,
            prepared_by_name=document.prepared_by_name,
            prepared_by_company=document.prepared_by_company or document.company_name,
            client_contact_person=document.client.contact_person,
            client_company=document.client.company,
        )


def site_value(site: SiteRecord, field_name: str, default_visibility_unit: str = "m") -> Any:
    """Return the structured value a codec encodes for one site field."""
    if field_name == "traffic":
        if site.traffic is None:
            return None
        return Measure(site.traffic, site.traffic_unit)
    if field_name == "location_visibility":
        visibility = site.location_visibility
        if visibility is None:
            return None
        return Measure(visibility.value, visibility.unit or default_visibility_unit)
    return copy.deepcopy(getattr(site, field_name))


def _apply_value(site: SiteRecord, field_name: str, value: Any, default_visibility_unit: str) -> None:
    if field_name == "traffic":
        site.traffic = value.value
        site.traffic_unit = value.unit
    elif field_name == "location_visibility":
        site.location_visibility = LocationVisibility(
            value=value.value, unit=value.unit or default_visibility_unit
        )
    else:
        setattr(site, field_name, value)


def _clear_value(site: SiteRecord, field_name: str) -> None:
    if field_name == "traffic":
        site.traffic = None
        site.traffic_unit = None
    else:
        setattr(site, field_name, None)


@dataclass
class EditSession:
    """Working copy of a document's editable surface."""

    document_id: str
    codecs: Dict[str, FieldCodec]
    original_snapshot: Dict[str, Dict[str, Any]]
    working_strings: Dict[Tuple[str, str], str]
    additional_specs: Dict[str, List[AdditionalSpec]]
    field_visibility: Dict[str, Dict[str, bool]]
    original_field_visibility: Dict[str, Dict[str, bool]]
    document_edits: DocumentEdits
    original_document_edits: DocumentEdits
    logo: LogoPlacement
    original_logo: LogoPlacement
    state: SessionState = SessionState.EDITING
    pending_logo_url: Optional[str] = None
    pending_site_images: Dict[str, str] = field(default_factory=dict)
    interaction: LogoInteraction = field(default_factory=LogoInteraction)
    max_additional_specs: int = 3
    default_visibility_unit: str = "m"
    logo_min_width: float = 50
    logo_min_height: float = 30

    @classmethod
    def start(cls, document: ProposalDocument, config: Optional[CompositorConfig] = None) -> "EditSession":
        """Snapshot a document and seed the editable strings from it."""
        config = config or CompositorConfig()
        codecs = build_site_codecs(config.currency_prefix, config.currency_suffix)

        snapshot: Dict[str, Dict[str, Any]] = {}
        for site in document.products:
            values = {
                name: site_value(site, name, config.default_visibility_unit) for name in codecs
            }
            values["additional_specs"] = copy.deepcopy(site.additional_specs)
            snapshot[site.id] = values

        visibility = {site.id: document.visibility_for(site.id) for site in document.products}
        edits = DocumentEdits.from_document(document)
        logo = LogoPlacement(
            left=document.logo_left if document.logo_left is not None else config.logo_left,
            top=document.logo_top if document.logo_top is not None else config.logo_top,
            width=document.logo_width if document.logo_width is not None else config.logo_width,
            height=document.logo_height if document.logo_height is not None else config.logo_height,
        )

        session = cls(
            document_id=document.id,
            codecs=codecs,
            original_snapshot=snapshot,
            working_strings={},
            additional_specs={},
            field_visibility=copy.deepcopy(visibility),
            original_field_visibility=visibility,
            document_edits=copy.deepcopy(edits),
            original_document_edits=edits,
            logo=replace(logo),
            original_logo=logo,
            max_additional_specs=config.max_additional_specs,
            default_visibility_unit=config.default_visibility_unit,
            logo_min_width=config.logo_min_width,
            logo_min_height=config.logo_min_height,
        )
        session._seed_from_snapshot()
        logger.info(f"Started edit session for {document.id} with {len(snapshot)} sites")
        return session

    def _seed_from_snapshot(self) -> None:
        self.working_strings = {}
        self.additional_specs = {}
        for site_id, values in self.original_snapshot.items():
            for name, codec in self.codecs.items():
                self.working_strings[(site_id, name)] = codec.encode(values[name])
            self.additional_specs[site_id] = copy.deepcopy(values["additional_specs"])

    def _require_editing(self) -> None:
        if self.state != SessionState.EDITING:
            raise SessionStateError(
                f"Edit session is {self.state.value}, not editing", document_id=self.document_id
            )

    def _require_site(self, site_id: str) -> None:
        if site_id not in self.original_snapshot:
            raise KeyError(f"Site {site_id} is not part of this edit session")

    @property
    def is_editing(self) -> bool:
        return self.state == SessionState.EDITING

    def working_string(self, site_id: str, field_name: str) -> str:
        return self.working_strings[(site_id, field_name)]

    def seeded_string(self, site_id: str, field_name: str) -> str:
        """The display string the field had when editing started."""
        return self.codecs[field_name].encode(self.original_snapshot[site_id][field_name])

    def set_field(self, site_id: str, field_name: str, raw_input: str) -> str:
        """Store an edited display string, reformatting number-bearing fields.

        Returns:
            The string actually stored
        """
        self._require_editing()
        self._require_site(site_id)
        if field_name not in self.codecs:
            raise KeyError(f"Not an editable site field: {field_name}")
        codec = self.codecs[field_name]
        stored = codec.normalize_input(raw_input) if codec.normalizes_input else raw_input
        self.working_strings[(site_id, field_name)] = stored
        return stored

    def set_document_field(self, field_name: str, value: Any) -> None:
        self._require_editing()
        if field_name not in DOCUMENT_FIELDS:
            raise KeyError(f"Not an editable document field: {field_name}")
        if field_name == "contact_info" and isinstance(value, dict):
            value = ContactInfo.from_dict(value)
        setattr(self.document_edits, field_name, value)

    def set_visibility(self, site_id: str, key: str, visible: bool) -> None:
        self._require_editing()
        if key not in FIELD_VISIBILITY_KEYS:
            raise KeyError(f"Unknown visibility toggle: {key}")
        self.field_visibility.setdefault(site_id, {k: True for k in FIELD_VISIBILITY_KEYS})[key] = bool(
            visible
        )

    def toggle_visibility(self, site_id: str, key: str) -> bool:
        current = self.field_visibility.get(site_id, {}).get(key, True)
        self.set_visibility(site_id, key, not current)
        return not current

    def add_spec(self, site_id: str) -> bool:
        """Append an empty spec row; returns False when the site is at the cap."""
        self._require_editing()
        self._require_site(site_id)
        specs = self.additional_specs.setdefault(site_id, [])
        if len(specs) >= self.max_additional_specs:
            logger.debug(f"Site {site_id} already has {len(specs)} additional specs")
            return False
        specs.append(AdditionalSpec())
        return True

    def edit_spec(
        self, site_id: str, index: int, label: Optional[str] = None, value: Optional[str] = None
    ) -> None:
        self._require_editing()
        self._require_site(site_id)
        spec = self.additional_specs[site_id][index]
        if label is not None:
            spec.label = label
        if value is not None:
            spec.value = value

    def remove_spec(self, site_id: str, index: int) -> None:
        self._require_editing()
        self._require_site(site_id)
        self.additional_specs[site_id].pop(index)

    def set_pending_logo(self, url: str) -> None:
        self._require_editing()
        self.pending_logo_url = url

    def set_pending_site_image(self, site_id: str, url: str) -> None:
        self._require_editing()
        self._require_site(site_id)
        self.pending_site_images[site_id] = url

    def begin_logo_drag(self, x: float, y: float) -> None:
        self._require_editing()
        self.interaction.begin_drag(self.logo, x, y)

    def begin_logo_resize(self, direction: str, x: float, y: float) -> None:
        self._require_editing()
        self.interaction.begin_resize(self.logo, direction, x, y)

    def move_pointer(self, x: float, y: float) -> LogoPlacement:
        placement = self.interaction.move(x, y, self.logo_min_width, self.logo_min_height)
        if placement is not None:
            self.logo = placement
        return self.logo

    def end_pointer_interaction(self) -> None:
        self.interaction.end()

    def cancel(self) -> None:
        """Discard every edit and return to the snapshot taken at start."""
        self._require_editing()
        self._seed_from_snapshot()
        self.field_visibility = copy.deepcopy(self.original_field_visibility)
        self.document_edits = copy.deepcopy(self.original_document_edits)
        self.logo = replace(self.original_logo)
        self.pending_logo_url = None
        self.pending_site_images = {}
        self.interaction.end()
        self.state = SessionState.CANCELLED
        logger.info(f"Cancelled edit session for {self.document_id}")

    def mark_committing(self) -> None:
        self._require_editing()
        self.interaction.end()
        self.state = SessionState.COMMITTING

    def mark_commit_failed(self) -> None:
        # Edits are kept so the caller can retry
        self.state = SessionState.EDITING

    def mark_committed(self) -> None:
        self.working_strings = {}
        self.additional_specs = {}
        self.pending_logo_url = None
        self.pending_site_images = {}
        self.state = SessionState.COMMITTED
        logger.info(f"Committed edit session for {self.document_id}")

    def to_dict(self) -> Dict[str, Any]:
        strings: Dict[str, Dict[str, str]] = {}
        for (site_id, name), text in self.working_strings.items():
            strings.setdefault(site_id, {})[name] = text
        return {
            "document_id": self.document_id,
            "state": self.state.value,
            "working_strings": strings,
            "additional_specs": {
                site_id: [spec.to_dict() for spec in specs]
                for site_id, specs in self.additional_specs.items()
            },
            "field_visibility": copy.deepcopy(self.field_visibility),
            "document_edits": asdict(self.document_edits),
            "logo": asdict(self.logo),
            "pending_logo_url": self.pending_logo_url,
            "pending_site_images": dict(self.pending_site_images),
            "interaction": {
                "mode": self.interaction.mode.value,
                "direction": self.interaction.direction,
            },
        }


def build_site_updates(session: EditSession, document: ProposalDocument) -> List[SiteRecord]:
    """Decode the session's edited strings into updated site records.

    Never raises for malformed display strings: a string that does not decode
    either leaves the persisted value alone or removes it, per the field's
    codec failure policy. Strings still equal to their seeded value count as
    untouched.
    """
    updated_sites = []
    for site in document.products:
        updated = site.copy()
        if site.id not in session.original_snapshot:
            updated_sites.append(updated)
            continue

        for name, codec in session.codecs.items():
            text = session.working_strings.get((site.id, name))
            if text is None or text == session.seeded_string(site.id, name):
                continue
            value = codec.decode(text)
            if value is None:
                if codec.failure_policy == FailurePolicy.REMOVE:
                    _clear_value(updated, name)
                else:
                    logger.debug(f"Ignoring undecodable {name} for site {site.id}: {text!r}")
                continue
            _apply_value(updated, name, value, session.default_visibility_unit)

        if site.id in session.additional_specs:
            updated.additional_specs = [
                replace(spec) for spec in session.additional_specs[site.id] if not spec.is_blank
            ]

        image_url = session.pending_site_images.get(site.id)
        if image_url:
            updated.media = [{"url": image_url, "is_video": False}]

        updated_sites.append(updated)
    return updated_sites


def build_update_payload(
    session: EditSession, document: ProposalDocument, sites: List[SiteRecord]
) -> Dict[str, Any]:
    """Assemble the flat field set written to the document store on commit."""
    edits = session.document_edits
    client = replace(
        document.client,
        contact_person=edits.client_contact_person,
        company=edits.client_company,
    )
    payload: Dict[str, Any] = {
        "title": edits.title,
        "proposal_title": edits.proposal_title,
        "proposal_message": edits.proposal_message,
        "contact_info": edits.contact_info.to_dict(),
        "company_name": edits.company_name,
        "prepared_by_name": edits.prepared_by_name,
        "prepared_by_company": edits.prepared_by_company,
        "client": client.to_dict(),
        "field_visibility": copy.deepcopy(session.field_visibility),
        "products": [site.to_dict() for site in sites],
    }
    payload.update(session.logo.to_dict())
    if session.pending_logo_url:
        payload["company_logo"] = session.pending_logo_url
    return payload
