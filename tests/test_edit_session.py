#!/usr/bin/env python3
"""
Tests for edit sessions: seeding, editing, cancel and commit decoding.
"""

from decimal import Decimal

import pytest

from src.common.config import CompositorConfig
from src.compositor.edit_session import (
    EditSession,
    SessionState,
    build_site_updates,
    build_update_payload,
)
from src.compositor.errors import SessionStateError
from src.compositor.interaction import InteractionMode
from src.compositor.models import Dimension, LocationVisibility, LogoPlacement, ProposalDocument
from tests.conftest import make_document, make_site


def _updated_site(session, document, site_id="site-1"):
    return {site.id: site for site in build_site_updates(session, document)}[site_id]


class TestSeeding:
    def test_strings_are_seeded_from_structured_values(self, document):
        session = EditSession.start(document)

        assert session.state == SessionState.EDITING
        assert session.working_string("site-1", "location_visibility") == "2,500 m"
        assert session.working_string("site-1", "dimension") == "10ft (H) x 20ft (W)"
        assert session.working_string("site-1", "traffic") == "1,500"
        assert session.working_string("site-1", "price") == "₱1,000.00 per month"
        assert session.working_string("site-1", "location") == "EDSA Guadalupe"

    def test_missing_values_seed_placeholder(self):
        raw = make_document(num_sites=0)
        raw["products"] = [{"id": "bare"}]
        session = EditSession.start(ProposalDocument.from_dict(raw))

        assert session.working_string("bare", "dimension") == "N/A"
        assert session.working_string("bare", "location_visibility") == "N/A"
        assert session.working_string("bare", "additional_message") == ""

    def test_visibility_unit_defaults_to_metres(self):
        raw = make_document(num_sites=0)
        raw["products"] = [make_site("a", location_visibility={"value": 800})]
        session = EditSession.start(ProposalDocument.from_dict(raw))

        assert session.working_string("a", "location_visibility") == "800 m"

    def test_currency_follows_config(self, document):
        config = CompositorConfig(currency_prefix="$", currency_suffix="/mo")
        session = EditSession.start(document, config)

        assert session.working_string("site-1", "price") == "$1,000.00/mo"

    def test_prepared_by_company_falls_back_to_company_name(self, document):
        session = EditSession.start(document)
        assert session.document_edits.prepared_by_company == "Acme Outdoor"

    def test_logo_defaults(self, document):
        session = EditSession.start(document)
        assert session.logo == LogoPlacement(left=114, top=175, width=183, height=110)


class TestEditing:
    def test_number_fields_are_reformatted_while_typing(self, document):
        session = EditSession.start(document)

        assert session.set_field("site-1", "location_visibility", "2000000") == "2,000,000"
        assert session.set_field("site-1", "traffic", "25000 cars") == "25,000 cars"
        assert session.set_field("site-1", "location", "Ayala  ") == "Ayala  "

    def test_unknown_site_or_field(self, document):
        session = EditSession.start(document)

        with pytest.raises(KeyError):
            session.set_field("site-99", "location", "x")
        with pytest.raises(KeyError):
            session.set_field("site-1", "elevation", "x")

    def test_spec_cap(self, document):
        session = EditSession.start(document)

        assert session.add_spec("site-1") is True
        assert session.add_spec("site-1") is True
        assert session.add_spec("site-1") is True
        assert session.add_spec("site-1") is False
        assert len(session.additional_specs["site-1"]) == 3

    def test_toggle_visibility(self, document):
        session = EditSession.start(document)

        assert session.toggle_visibility("site-1", "price") is False
        assert session.field_visibility["site-1"]["price"] is False
        assert session.toggle_visibility("site-1", "price") is True

        with pytest.raises(KeyError):
            session.set_visibility("site-1", "colour", False)

    def test_document_fields(self, document):
        session = EditSession.start(document)
        session.set_document_field("proposal_title", "Summer Sites")
        session.set_document_field("contact_info", {"name": "Lee", "phone": "555-0100"})

        assert session.document_edits.proposal_title == "Summer Sites"
        assert session.document_edits.contact_info.name == "Lee"
        assert session.document_edits.contact_info.heading == "contact us:"

        with pytest.raises(KeyError):
            session.set_document_field("status", "sent")

    def test_edits_do_not_touch_document(self, document):
        session = EditSession.start(document)
        session.set_field("site-1", "location", "Makati")

        assert document.site("site-1").location == "EDSA Guadalupe"


class TestCancel:
    def test_cancel_restores_seeded_state(self, document):
        session = EditSession.start(document)
        seeded = dict(session.working_strings)

        session.set_field("site-1", "location_visibility", "9999 km")
        session.add_spec("site-1")
        session.toggle_visibility("site-2", "traffic")
        session.set_document_field("title", "Changed")
        session.set_pending_logo("memory://logo.png")
        session.begin_logo_drag(0, 0)
        session.move_pointer(40, 10)
        session.cancel()

        assert session.state == SessionState.CANCELLED
        assert session.working_strings == seeded
        assert session.additional_specs["site-1"] == []
        assert session.field_visibility["site-2"]["traffic"] is True
        assert session.document_edits.title == "Q3 Campaign"
        assert session.pending_logo_url is None
        assert session.logo == session.original_logo
        assert not session.interaction.active

    def test_no_edits_after_cancel(self, document):
        session = EditSession.start(document)
        session.cancel()

        with pytest.raises(SessionStateError):
            session.set_field("site-1", "location", "x")


class TestBuildSiteUpdates:
    def test_untouched_session_changes_nothing(self, document):
        session = EditSession.start(document)
        sites = build_site_updates(session, document)

        assert [s.to_dict() for s in sites] == [s.to_dict() for s in document.products]

    def test_visibility_with_new_unit(self, document):
        session = EditSession.start(document)
        session.set_field("site-1", "location_visibility", "2500 km")

        site = _updated_site(session, document)
        assert site.location_visibility == LocationVisibility(value=2500, unit="km")

    def test_visibility_without_unit_gets_default(self, document):
        session = EditSession.start(document)
        session.set_field("site-1", "location_visibility", "3000")

        site = _updated_site(session, document)
        assert site.location_visibility == LocationVisibility(value=3000, unit="m")

    def test_invalid_visibility_removes_value(self, document):
        session = EditSession.start(document)
        session.set_field("site-1", "location_visibility", "far away")

        site = _updated_site(session, document)
        assert site.location_visibility is None
        assert "location_visibility" not in site.to_dict()

    def test_malformed_dimension_keeps_value(self, document):
        session = EditSession.start(document)
        session.set_field("site-1", "dimension", "garbage")

        site = _updated_site(session, document)
        assert site.dimension == Dimension(height=10, width=20)

    def test_dimension_edit(self, document):
        session = EditSession.start(document)
        session.set_field("site-1", "dimension", "12.5ft (H) x 40ft (W)")

        site = _updated_site(session, document)
        assert site.dimension == Dimension(height=Decimal("12.5"), width=40)

    def test_traffic_keeps_unit(self, document):
        session = EditSession.start(document)
        session.set_field("site-1", "traffic", "25000 cars/day")

        site = _updated_site(session, document)
        assert site.traffic == 25000
        assert site.traffic_unit == "cars/day"

    def test_price_edit(self, document):
        session = EditSession.start(document)
        session.set_field("site-2", "price", "₱2,500.50 per month")

        site = _updated_site(session, document, "site-2")
        assert site.price == Decimal("2500.50")

    def test_blank_message_removes_it(self):
        raw = make_document(num_sites=0)
        raw["products"] = [make_site("a", additional_message="Near the mall")]
        document = ProposalDocument.from_dict(raw)
        session = EditSession.start(document)
        session.set_field("a", "additional_message", "   ")

        site = _updated_site(session, document, "a")
        assert site.additional_message is None

    def test_message_is_trimmed(self, document):
        session = EditSession.start(document)
        session.set_field("site-1", "additional_message", "  Lit at night  ")

        assert _updated_site(session, document).additional_message == "Lit at night"

    def test_blank_specs_are_dropped(self, document):
        session = EditSession.start(document)
        session.add_spec("site-1")
        session.add_spec("site-1")
        session.edit_spec("site-1", 1, label="Lighting", value="LED")

        site = _updated_site(session, document)
        assert [(s.label, s.value) for s in site.additional_specs] == [("Lighting", "LED")]

    def test_pending_site_image_replaces_media(self, document):
        session = EditSession.start(document)
        session.set_pending_site_image("site-2", "memory://assets/new.jpg")

        site = _updated_site(session, document, "site-2")
        assert site.media == [{"url": "memory://assets/new.jpg", "is_video": False}]

    def test_sites_added_after_start_pass_through(self, document):
        session = EditSession.start(document)
        raw = document.to_dict()
        raw["products"].append(make_site("late"))
        grown = ProposalDocument.from_dict(raw)

        site = _updated_site(session, grown, "late")
        assert site.to_dict() == grown.site("late").to_dict()


class TestBuildUpdatePayload:
    def test_payload_fields(self, document):
        session = EditSession.start(document)
        session.set_document_field("client_company", "Other Brand")
        session.toggle_visibility("site-1", "price")
        session.set_pending_logo("memory://assets/logo.png")
        sites = build_site_updates(session, document)

        payload = build_update_payload(session, document, sites)

        assert payload["client"]["company"] == "Other Brand"
        assert payload["client"]["id"] == "client-1"
        assert payload["field_visibility"]["site-1"]["price"] is False
        assert payload["company_logo"] == "memory://assets/logo.png"
        assert payload["logo_width"] == 183
        assert len(payload["products"]) == 2

    def test_no_logo_key_without_upload(self, document):
        session = EditSession.start(document)
        payload = build_update_payload(session, document, build_site_updates(session, document))
        assert "company_logo" not in payload


class TestLogoInteraction:
    def test_drag_moves_logo(self, document):
        session = EditSession.start(document)
        session.begin_logo_drag(200, 200)

        assert session.interaction.mode == InteractionMode.DRAGGING
        assert session.interaction.cursor == "move"
        placement = session.move_pointer(230, 190)
        assert (placement.left, placement.top) == (144, 165)
        assert (placement.width, placement.height) == (183, 110)

        session.end_pointer_interaction()
        assert session.interaction.cursor == ""

    def test_resize_from_west_edge_keeps_east_edge(self, document):
        session = EditSession.start(document)
        session.begin_logo_resize("w", 114, 200)

        placement = session.move_pointer(134, 200)
        assert placement.width == 163
        assert placement.left + placement.width == 114 + 183

    def test_resize_clamps_to_minimum(self, document):
        session = EditSession.start(document)
        session.begin_logo_resize("se", 0, 0)

        placement = session.move_pointer(-1000, -1000)
        assert (placement.width, placement.height) == (50, 30)
        assert (placement.left, placement.top) == (114, 175)

    def test_north_resize_moves_top(self, document):
        session = EditSession.start(document)
        session.begin_logo_resize("n", 0, 175)

        placement = session.move_pointer(0, 155)
        assert placement.height == 130
        assert placement.top == 155

    def test_bad_direction(self, document):
        session = EditSession.start(document)
        with pytest.raises(ValueError):
            session.begin_logo_resize("up", 0, 0)

    def test_pointer_moves_without_interaction_are_ignored(self, document):
        session = EditSession.start(document)
        assert session.move_pointer(500, 500) == session.original_logo


class TestSerialization:
    def test_to_dict(self, document):
        session = EditSession.start(document)
        session.set_field("site-1", "location", "Makati")

        data = session.to_dict()
        assert data["state"] == "editing"
        assert data["working_strings"]["site-1"]["location"] == "Makati"
        assert data["document_edits"]["contact_info"]["heading"] == "contact us:"
        assert data["interaction"] == {"mode": "idle", "direction": None}
