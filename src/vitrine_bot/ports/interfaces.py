
"""Portas hexagonais (interfaces) e DTOs."""
from __future__ import annotations
from typing import Annotated, Literal, Protocol, Union
from pydantic import BaseModel, Field, TypeAdapter

class AudioClip(BaseModel):
    data: bytes
    filename: str = "audio.webm"
    content_type: str = "audio/webm"

class InboundMessageDTO(BaseModel):
    """Mensagem do cliente recebida pelo endpoint de entrada."""
    tenant_id: str
    conversation_id: str
    content: str = ""
    image_url: str | None = None
    audio: AudioClip | None = None

class Address(BaseModel):
    """Endereço normalizado (CEP somente dígitos)."""
    cep: str
    street: str = ""
    complement: str = ""
    neighborhood: str = ""
    city: str = ""
    state: str = ""

# ---------- Metadata de mensagens (variante com tag `kind`) ----------
class ImageMeta(BaseModel):
    kind: Literal["image"] = "image"
    image_url: str

class CartLine(BaseModel):
    product_id: str
    name: str
    unit_price_cents: int
    quantity: int

    @property
    def subtotal_cents(self) -> int:
        return self.unit_price_cents * self.quantity

class CartMeta(BaseModel):
    kind: Literal["cart"] = "cart"
    items: list[CartLine]
    subtotal_cents: int

class CepLookupMeta(BaseModel):
    kind: Literal["cep_lookup"] = "cep_lookup"
    address: Address

class OrderConfirmationMeta(BaseModel):
    kind: Literal["order_confirmation"] = "order_confirmation"
    order_id: str
    confirmation_code: str
    total_cents: int

class ProductImageMeta(BaseModel):
    kind: Literal["product_image"] = "product_image"
    product_id: str
    name: str
    image_url: str
    has_more_images: bool = False

MessageMetadata = Annotated[
    Union[ImageMeta, CartMeta, CepLookupMeta, OrderConfirmationMeta, ProductImageMeta],
    Field(discriminator="kind"),
]
METADATA_ADAPTER: TypeAdapter[MessageMetadata] = TypeAdapter(MessageMetadata)

def decode_metadata(raw: dict | None) -> MessageMetadata | None:
    """Decodifica o JSON persistido em `messages.metadata`."""
    if not raw:
        return None
    return METADATA_ADAPTER.validate_python(raw)

class MessageDTO(BaseModel):
    """Mensagem persistida, como devolvida ao canal."""
    id: int
    conversation_id: str
    role: str
    content: str
    metadata: dict | None = None

class TurnResult(BaseModel):
    """Resposta do pipeline para uma mensagem do cliente."""
    message: MessageDTO | None = None
    media: list[MessageDTO] = []
    gated: bool = False

# ---------- Portas ----------
class PostalLookupPort(Protocol):
    def lookup(self, cep: str) -> Address | None: ...

class TranscriberPort(Protocol):
    def transcribe(self, clip: AudioClip) -> str: ...
