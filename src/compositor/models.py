"""Data models for proposal documents."""

import copy
from dataclasses import dataclass, field
from decimal import Decimal, InvalidOperation
from typing import Any, Dict, List, Optional, Union

Number = Union[int, Decimal]

FIELD_VISIBILITY_KEYS = (
    "location",
    "dimension",
    "type",
    "traffic",
    "location_visibility",
    "price",
    "additional_message",
)


def to_decimal(value: Any) -> Optional[Decimal]:
    """Convert a persisted numeric value to Decimal, None when not numeric."""
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, int):
        return Decimal(value)
    try:
        # str() first so floats keep their shortest repr instead of binary noise
        amount = value if isinstance(value, Decimal) else Decimal(str(value).strip())
    except InvalidOperation:
        return None
    return amount if amount.is_finite() else None


def to_number(value: Any) -> Optional[Number]:
    """Convert a persisted numeric value to int when integral, else Decimal."""
    if isinstance(value, int) and not isinstance(value, bool):
        return value
    amount = to_decimal(value)
    if amount is None:
        return None
    if amount == amount.to_integral_value() and "." not in str(value):
        return int(amount)
    return amount


def to_int(value: Any) -> Optional[int]:
    number = to_number(value)
    if number is None:
        return None
    return int(number)


@dataclass
class Dimension:
    """Height and width of a site face, in feet."""

    height: Optional[Number] = None
    width: Optional[Number] = None

    @classmethod
    def from_dict(cls, raw: Optional[Dict[str, Any]]) -> Optional["Dimension"]:
        if not raw:
            return None
        dimension = cls(height=to_number(raw.get("height")), width=to_number(raw.get("width")))
        if dimension.height is None and dimension.width is None:
            return None
        return dimension

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {}
        if self.height is not None:
            data["height"] = self.height
        if self.width is not None:
            data["width"] = self.width
        return data


@dataclass
class LocationVisibility:
    """Distance from which a site is visible."""

    value: int
    unit: Optional[str] = None

    @classmethod
    def from_dict(cls, raw: Optional[Dict[str, Any]]) -> Optional["LocationVisibility"]:
        if not raw:
            return None
        value = to_int(raw.get("value"))
        if value is None:
            return None
        return cls(value=value, unit=raw.get("unit"))

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {"value": self.value}
        if self.unit:
            data["unit"] = self.unit
        return data


@dataclass
class AdditionalSpec:
    """Free-form label/value row shown under a site's standard attributes."""

    label: str = ""
    value: str = ""

    @property
    def is_blank(self) -> bool:
        return not self.label.strip() and not self.value.strip()

    def to_dict(self) -> Dict[str, str]:
        return {"label": self.label, "value": self.value}


@dataclass
class SiteRecord:
    """One advertising site within a proposal."""

    id: str
    name: str = ""
    location: str = ""
    type: str = ""
    price: Optional[Decimal] = None
    traffic: Optional[int] = None
    traffic_unit: Optional[str] = None
    dimension: Optional[Dimension] = None
    location_visibility: Optional[LocationVisibility] = None
    additional_specs: List[AdditionalSpec] = field(default_factory=list)
    additional_message: Optional[str] = None
    site_code: Optional[str] = None
    media: List[Dict[str, Any]] = field(default_factory=list)
    # Persisted attributes this package does not interpret
    extra: Dict[str, Any] = field(default_factory=dict)

    _KNOWN_KEYS = (
        "id",
        "name",
        "location",
        "type",
        "price",
        "traffic",
        "traffic_unit",
        "dimension",
        "location_visibility",
        "additional_specs",
        "additional_message",
        "site_code",
        "media",
    )

    @classmethod
    def from_dict(cls, raw: Dict[str, Any]) -> "SiteRecord":
        specs = [
            AdditionalSpec(label=str(spec.get("label", "")), value=str(spec.get("value", "")))
            for spec in raw.get("additional_specs") or []
            if isinstance(spec, dict)
        ]
        return cls(
            id=str(raw["id"]),
            name=raw.get("name") or "",
            location=raw.get("location") or "",
            type=raw.get("type") or "",
            price=to_decimal(raw.get("price")),
            traffic=to_int(raw.get("traffic")),
            traffic_unit=raw.get("traffic_unit") or None,
            dimension=Dimension.from_dict(raw.get("dimension")),
            location_visibility=LocationVisibility.from_dict(raw.get("location_visibility")),
            additional_specs=specs,
            additional_message=raw.get("additional_message") or None,
            site_code=raw.get("site_code") or None,
            media=list(raw.get("media") or []),
            extra={k: copy.deepcopy(v) for k, v in raw.items() if k not in cls._KNOWN_KEYS},
        )

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = copy.deepcopy(self.extra)
        data.update(
            {
                "id": self.id,
                "name": self.name,
                "location": self.location,
                "type": self.type,
                "additional_specs": [spec.to_dict() for spec in self.additional_specs],
                "media": copy.deepcopy(self.media),
            }
        )
        if self.price is not None:
            data["price"] = self.price
        if self.traffic is not None:
            data["traffic"] = self.traffic
        if self.traffic_unit:
            data["traffic_unit"] = self.traffic_unit
        if self.dimension is not None:
            data["dimension"] = self.dimension.to_dict()
        if self.location_visibility is not None:
            data["location_visibility"] = self.location_visibility.to_dict()
        if self.additional_message:
            data["additional_message"] = self.additional_message
        if self.site_code:
            data["site_code"] = self.site_code
        return data

    def copy(self) -> "SiteRecord":
        return copy.deepcopy(self)


@dataclass
class PageElement:
    """Freeform element placed on a custom page."""

    id: str
    type: str  # text|image|video
    content: str = ""
    x: float = 0
    y: float = 0
    width: float = 0
    height: float = 0
    style: Dict[str, Any] = field(default_factory=dict)

    ELEMENT_TYPES = ("text", "image", "video")

    @classmethod
    def from_dict(cls, raw: Dict[str, Any]) -> "PageElement":
        element_type = raw.get("type", "text")
        if element_type not in cls.ELEMENT_TYPES:
            raise ValueError(f"Unknown page element type: {element_type}")
        position = raw.get("position") or {}
        size = raw.get("size") or {}
        return cls(
            id=str(raw["id"]),
            type=element_type,
            content=raw.get("content", ""),
            x=position.get("x", 0),
            y=position.get("y", 0),
            width=size.get("width", 0),
            height=size.get("height", 0),
            style=dict(raw.get("style") or {}),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "type": self.type,
            "content": self.content,
            "position": {"x": self.x, "y": self.y},
            "size": {"width": self.width, "height": self.height},
            "style": dict(self.style),
        }


@dataclass
class CustomPage:
    """User-authored blank page appended after the site pages."""

    id: str
    position: int = 0  # recorded at creation, not used for ordering
    elements: List[PageElement] = field(default_factory=list)
    type: str = "blank"

    @classmethod
    def from_dict(cls, raw: Dict[str, Any]) -> "CustomPage":
        return cls(
            id=str(raw["id"]),
            position=to_int(raw.get("position")) or 0,
            elements=[PageElement.from_dict(e) for e in raw.get("elements") or []],
            type=raw.get("type", "blank"),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "type": self.type,
            "position": self.position,
            "elements": [e.to_dict() for e in self.elements],
        }


@dataclass
class ContactInfo:
    """Contact block shown on the outro page."""

    heading: str = "contact us:"
    name: str = ""
    role: str = "Sales"
    phone: str = ""
    email: str = ""

    @classmethod
    def from_dict(cls, raw: Optional[Dict[str, Any]]) -> "ContactInfo":
        raw = raw or {}
        return cls(
            heading=raw.get("heading", "contact us:"),
            name=raw.get("name", ""),
            role=raw.get("role", "Sales"),
            phone=raw.get("phone", ""),
            email=raw.get("email", ""),
        )

    def to_dict(self) -> Dict[str, str]:
        return {
            "heading": self.heading,
            "name": self.name,
            "role": self.role,
            "phone": self.phone,
            "email": self.email,
        }


@dataclass
class ClientInfo:
    """Client the proposal is addressed to."""

    id: str = ""
    company: str = ""
    contact_person: str = ""
    email: str = ""
    phone: str = ""
    extra: Dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_dict(cls, raw: Optional[Dict[str, Any]]) -> "ClientInfo":
        raw = raw or {}
        known = ("id", "company", "contact_person", "email", "phone")
        return cls(
            id=str(raw.get("id", "")),
            company=raw.get("company", ""),
            contact_person=raw.get("contact_person", ""),
            email=raw.get("email", ""),
            phone=raw.get("phone", ""),
            extra={k: v for k, v in raw.items() if k not in known},
        )

    def to_dict(self) -> Dict[str, Any]:
        data = copy.deepcopy(self.extra)
        data.update(
            {
                "id": self.id,
                "company": self.company,
                "contact_person": self.contact_person,
                "email": self.email,
                "phone": self.phone,
            }
        )
        return data


@dataclass
class LogoPlacement:
    """Position and size of the company logo on the intro page, in pixels."""

    left: float
    top: float
    width: float
    height: float

    def to_dict(self) -> Dict[str, float]:
        return {
            "logo_left": self.left,
            "logo_top": self.top,
            "logo_width": self.width,
            "logo_height": self.height,
        }


@dataclass
class ProposalDocument:
    """A proposal composed of sites, custom pages and template settings."""

    id: str
    title: str = "Site Proposals"
    proposal_title: str = "Site Proposals"
    proposal_message: str = "Thank You!"
    contact_info: ContactInfo = field(default_factory=ContactInfo)
    client: ClientInfo = field(default_factory=ClientInfo)
    products: List[SiteRecord] = field(default_factory=list)
    custom_pages: List[CustomPage] = field(default_factory=list)
    field_visibility: Dict[str, Dict[str, bool]] = field(default_factory=dict)
    company_name: str = ""
    company_logo: str = ""
    logo_left: Optional[float] = None
    logo_top: Optional[float] = None
    logo_width: Optional[float] = None
    logo_height: Optional[float] = None
    prepared_by_name: str = ""
    prepared_by_company: str = ""
    template_size: str = "A4"
    template_orientation: str = "Landscape"
    template_layout: str = "1"
    template_background: str = ""
    status: str = "draft"
    extra: Dict[str, Any] = field(default_factory=dict)

    _SIMPLE_KEYS = (
        "title",
        "proposal_title",
        "proposal_message",
        "company_name",
        "company_logo",
        "logo_left",
        "logo_top",
        "logo_width",
        "logo_height",
        "prepared_by_name",
        "prepared_by_company",
        "template_size",
        "template_orientation",
        "template_layout",
        "template_background",
        "status",
    )
    _NESTED_KEYS = ("id", "contact_info", "client", "products", "custom_pages", "field_visibility")

    @classmethod
    def from_dict(cls, raw: Dict[str, Any]) -> "ProposalDocument":
        document = cls(
            id=str(raw["id"]),
            contact_info=ContactInfo.from_dict(raw.get("contact_info")),
            client=ClientInfo.from_dict(raw.get("client")),
            products=[SiteRecord.from_dict(p) for p in raw.get("products") or []],
            custom_pages=[CustomPage.from_dict(p) for p in raw.get("custom_pages") or []],
            field_visibility={
                site_id: {k: bool(v) for k, v in toggles.items()}
                for site_id, toggles in (raw.get("field_visibility") or {}).items()
            },
            extra={
                k: copy.deepcopy(v)
                for k, v in raw.items()
                if k not in cls._SIMPLE_KEYS and k not in cls._NESTED_KEYS
            },
        )
        for key in cls._SIMPLE_KEYS:
            if raw.get(key) is not None:
                setattr(document, key, raw[key])
        for key in ("logo_left", "logo_top", "logo_width", "logo_height"):
            amount = to_decimal(getattr(document, key))
            setattr(document, key, float(amount) if amount is not None else None)
        document.template_layout = str(document.template_layout)
        return document

    def to_dict(self) -> Dict[str, Any]:
        data = copy.deepcopy(self.extra)
        for key in self._SIMPLE_KEYS:
            value = getattr(self, key)
            if value is not None:
                data[key] = value
        data.update(
            {
                "id": self.id,
                "contact_info": self.contact_info.to_dict(),
                "client": self.client.to_dict(),
                "products": [p.to_dict() for p in self.products],
                "custom_pages": [p.to_dict() for p in self.custom_pages],
                "field_visibility": copy.deepcopy(self.field_visibility),
            }
        )
        return data

    def site(self, site_id: str) -> Optional[SiteRecord]:
        for product in self.products:
            if product.id == site_id:
                return product
        return None

    def visibility_for(self, site_id: str) -> Dict[str, bool]:
        """Return the field toggles for a site, defaulting every key to visible."""
        stored = self.field_visibility.get(site_id, {})
        return {key: stored.get(key, True) for key in FIELD_VISIBILITY_KEYS}
