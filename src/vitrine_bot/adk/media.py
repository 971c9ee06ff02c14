
"""Anotador de mídia: um cartão com imagem para cada produto citado entre colchetes."""
from __future__ import annotations
from ..core.catalog import CatalogItem, CatalogSnapshot, format_brl
from ..core.logging import get_logger
from ..core.markup import scan_bracket_tokens
from ..ports.interfaces import MessageDTO, ProductImageMeta
from ..repo import repo

log = get_logger()

CARD_DESCRIPTION_LIMIT = 200

def product_card(item: CatalogItem) -> str:
    text = f"{item.name} - {format_brl(item.price_cents)}"
    if item.description:
        text += "\n" + item.description[:CARD_DESCRIPTION_LIMIT]
    return text

class MediaAnnotator:
    def annotate(self, conversation_id: str, reply: str, snapshot: CatalogSnapshot) -> list[MessageDTO]:
        """Persiste uma mensagem `product_image` por produto citado que tenha imagem."""
        media: list[MessageDTO] = []
        for token in scan_bracket_tokens(reply):
            item = snapshot.by_name(token)
            if item is None or item.first_image is None:
                continue
            meta = ProductImageMeta(
                product_id=item.id,
                name=item.name,
                image_url=item.first_image,
                has_more_images=len(item.image_urls) > 1,
            )
            media.append(repo.append_message(conversation_id, "assistant", product_card(item), meta))
        if media:
            log.info("media_annotated", conversation_id=conversation_id, count=len(media))
        return media
