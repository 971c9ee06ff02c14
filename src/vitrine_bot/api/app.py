
"""API Flask: mensagens do chat web, criação de conversa, takeover/liberação,
mensagens do operador e status de pedidos."""
from __future__ import annotations
from flask import Flask, request, jsonify
from pydantic import ValidationError
from ..core.di import bootstrap_di
from ..core.logging import set_trace_id, get_logger
from ..core.guardrails import sanitize_text
from ..domain.states import InvalidTransition
from ..ports.interfaces import AudioClip, InboundMessageDTO
from ..repo import repo
from ..adk.orchestrator import EmptyMessage, SalesOrchestrator

log = get_logger()

def _conversation_json(conv) -> dict:
    return {
        "id": conv.id,
        "company_id": conv.company_id,
        "channel": conv.channel,
        "mode": conv.mode,
        "status": conv.status,
        "needs_human_attention": conv.needs_human_attention,
        "taken_over_by": conv.taken_over_by,
    }

def _inbound_from_request(tenant_id: str, conversation_id: str) -> InboundMessageDTO:
    """Aceita JSON ou multipart (com arquivo `audio`)."""
    if request.files or request.form:
        audio = None
        f = request.files.get("audio")
        if f is not None:
            audio = AudioClip(
                data=f.read(),
                filename=f.filename or "audio.webm",
                content_type=f.mimetype or "audio/webm",
            )
        return InboundMessageDTO(
            tenant_id=tenant_id,
            conversation_id=conversation_id,
            content=request.form.get("content", ""),
            image_url=request.form.get("image_url") or None,
            audio=audio,
        )
    body = request.get_json(silent=True) or {}
    return InboundMessageDTO(
        tenant_id=tenant_id,
        conversation_id=conversation_id,
        content=body.get("content") or "",
        image_url=body.get("image_url") or None,
    )

def create_app(bootstrap: bool = True) -> Flask:
    """Cria a aplicação. Em testes, use bootstrap=False e registre o container antes."""
    if bootstrap:
        bootstrap_di()
    app = Flask(__name__)

    @app.before_request
    def _trace():
        set_trace_id(request.headers.get("X-Trace-Id"))

    @app.errorhandler(repo.ConversationNotFound)
    def _conv_not_found(exc):
        return jsonify({"error": "conversation_not_found"}), 404

    @app.errorhandler(repo.OrderNotFound)
    def _order_not_found(exc):
        return jsonify({"error": "order_not_found"}), 404

    @app.errorhandler(EmptyMessage)
    def _empty(exc):
        return jsonify({"error": "empty_message"}), 400

    @app.errorhandler(ValidationError)
    def _invalid_payload(exc: ValidationError):
        return jsonify({"error": "invalid_payload"}), 400

    @app.errorhandler(InvalidTransition)
    def _invalid_transition(exc: InvalidTransition):
        return jsonify({"error": "invalid_transition", "current": exc.current, "target": exc.target}), 409

    @app.get("/healthz")
    def healthz():
        """Health check básico."""
        return {"ok": True}

    @app.post("/api/chatweb/<tenant_id>/conversations")
    def create_conversation(tenant_id: str):
        """Primeiro contato do cliente: cria a conversa."""
        if repo.get_company(tenant_id) is None:
            return jsonify({"error": "company_not_found"}), 404
        body = request.get_json(silent=True) or {}
        try:
            conv = repo.create_conversation(
                tenant_id,
                body.get("channel") or "chatweb",
                customer_name=body.get("customer_name"),
                customer_phone=body.get("customer_phone"),
            )
        except ValueError:
            return jsonify({"error": "invalid_channel"}), 400
        return jsonify(_conversation_json(conv)), 201

    @app.post("/api/chatweb/<tenant_id>/conversations/<conversation_id>/messages")
    def inbound_message(tenant_id: str, conversation_id: str):
        """Mensagem do cliente → resposta do agente (síncrona)."""
        inbound = _inbound_from_request(tenant_id, conversation_id)
        log.info("message_in", tenant_id=tenant_id, conversation_id=conversation_id,
                 has_audio=inbound.audio is not None, has_image=bool(inbound.image_url))
        result = SalesOrchestrator().handle_inbound(inbound)
        return jsonify(result.model_dump(mode="json"))

    @app.post("/api/conversations/<conversation_id>/takeover")
    def takeover(conversation_id: str):
        """Operador assume a conversa (modo human ou hybrid)."""
        body = request.get_json(silent=True) or {}
        try:
            conv = repo.take_over(
                conversation_id,
                target=body.get("mode") or "human",
                operator_id=body.get("operator_id"),
                clear_attention=bool(body.get("clear_attention", True)),
            )
        except InvalidTransition:
            raise
        except ValueError:
            return jsonify({"error": "invalid_mode"}), 400
        repo.log_event(conversation_id, "takeover", {"mode": conv.mode, "operator_id": conv.taken_over_by})
        return jsonify(_conversation_json(conv))

    @app.post("/api/conversations/<conversation_id>/release")
    def release(conversation_id: str):
        """Devolve a conversa para a IA."""
        conv = repo.release(conversation_id)
        repo.log_event(conversation_id, "release", {"mode": conv.mode})
        return jsonify(_conversation_json(conv))

    @app.post("/api/conversations/<conversation_id>/operator-messages")
    def operator_message(conversation_id: str):
        """Mensagem escrita pelo operador humano."""
        body = request.get_json(silent=True) or {}
        content = sanitize_text(body.get("content"))
        if not content:
            raise EmptyMessage(conversation_id)
        repo.get_conversation(conversation_id)
        msg = repo.append_message(
            conversation_id, "operator", content,
            operator_id=body.get("operator_id"), operator_name=body.get("operator_name"),
        )
        return jsonify(msg.model_dump(mode="json")), 201

    @app.post("/api/orders/<tenant_id>/<order_id>/status")
    def order_status(tenant_id: str, order_id: str):
        """Avança o status do pedido conforme as transições permitidas."""
        body = request.get_json(silent=True) or {}
        try:
            order = repo.update_order_status(tenant_id, order_id, body.get("status") or "")
        except InvalidTransition:
            raise
        except ValueError:
            return jsonify({"error": "invalid_status"}), 400
        return jsonify({"id": order.id, "status": order.status})

    return app
