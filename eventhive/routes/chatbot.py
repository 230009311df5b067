import json
import logging
from flask import Blueprint, Response, current_app, request, stream_with_context

from eventhive.services.chatbot import ChatbotError, find_response, latest_user_message, sse_frame, stream_response

logger = logging.getLogger(__name__)

chatbot_bp = Blueprint("chatbot", __name__)

SSE_HEADERS = {
    "Cache-Control": "no-cache",
    "Connection": "keep-alive",
}


def error_stream(message, status=400):
    frame = sse_frame({"content": f"Error: {message}", "role": "assistant"})
    return Response(frame, status=status, mimetype="text/event-stream", headers=SSE_HEADERS)


def reply(messages):
    try:
        user_message = latest_user_message(messages)
    except ChatbotError as e:
        return error_stream(str(e))

    text = find_response(user_message)
    delay = current_app.config["CHATBOT_TOKEN_DELAY"]
    return Response(
        stream_with_context(stream_response(text, delay)),
        mimetype="text/event-stream",
        headers=SSE_HEADERS,
    )


@chatbot_bp.route("/", methods=["GET"])
def chat_stream():
    raw = request.args.get("messages")
    if not raw:
        return error_stream("No messages provided")
    try:
        messages = json.loads(raw)
    except ValueError:
        logger.info("Chat request with unparseable messages parameter")
        return error_stream("Invalid messages format")
    return reply(messages)


@chatbot_bp.route("/", methods=["POST"])
def chat_post():
    data = request.get_json(silent=True) or {}
    messages = data.get("messages")
    if not messages:
        return error_stream("Invalid or missing messages")
    return reply(messages)
