"""Keyword-pattern help desk responder for the chat widget."""

import json
import time

MIN_CONTAINMENT_SCORE = 0.2
MIN_WORD_LENGTH = 3

RESPONSE_PATTERNS = [
    {
        "patterns": ["hello", "hi", "hey", "greetings"],
        "response": "👋 Hello! How can I help you with the Event App today?",
    },
    {
        "patterns": ["event", "find events", "search", "search events"],
        "response": "You can search for events by using the search bar at the top of the home page. You can filter by date, location, or category.",
    },
    {
        "patterns": ["review", "leave review", "rate", "rating"],
        "response": "To leave a review, navigate to the event page and scroll down to the reviews section. You'll need to be logged in to leave a review.",
    },
    {
        "patterns": ["calendar", "schedule", "my events"],
        "response": "You can view your events in calendar view by clicking on 'Calendar' in the main navigation menu. Events you're attending will be highlighted.",
    },
    {
        "patterns": ["account", "profile", "settings"],
        "response": "You can manage your account settings by clicking on your profile picture in the top right corner and selecting 'Settings'.",
    },
    {
        "patterns": ["create event", "host event", "new event"],
        "response": "To create a new event, you need admin permissions. If you're an admin, you can access the event creation form from the admin dashboard.",
    },
    {
        "patterns": ["register", "registration", "ticket", "tickets", "book"],
        "response": "To register for an event, open the event page and click 'Register'. Paid events will take you to a secure checkout, and you'll get a confirmation code once your booking is complete.",
    },
    {
        "patterns": ["notify", "notification", "alert", "reminder"],
        "response": "You'll receive notifications about events you're interested in, updates to events, and responses to your reviews. Check your notification settings in your profile.",
    },
    {
        "patterns": ["help", "support", "contact"],
        "response": "For additional help, you can contact our support team by clicking on 'Support' in the footer of the app.",
    },
]

FALLBACK_RESPONSE = (
    "I'm not sure I understand. Could you please rephrase your question about the Event App? "
    "I can help with finding events, reviewing events, using the calendar, and general app navigation."
)


class ChatbotError(ValueError):
    pass


def _best_containment_match(message):
    best_score, best_response = 0.0, None
    for entry in RESPONSE_PATTERNS:
        for pattern in entry["patterns"]:
            if pattern in message:
                score = len(pattern) / len(message)
                if score > best_score:
                    best_score, best_response = score, entry["response"]
    if best_score > MIN_CONTAINMENT_SCORE:
        return best_response
    return None


def _best_overlap_match(message):
    words = {w for w in message.split() if len(w) > MIN_WORD_LENGTH}
    if not words:
        return None

    best_overlap, best_response = 0, None
    for entry in RESPONSE_PATTERNS:
        pattern_words = {w for pattern in entry["patterns"] for w in pattern.split()}
        overlap = len(words & pattern_words)
        if overlap > best_overlap:
            best_overlap, best_response = overlap, entry["response"]
    return best_response


def find_response(user_message):
    """Canned reply for a free-text message, or FALLBACK_RESPONSE."""
    message = (user_message or "").strip().lower()
    if not message:
        return FALLBACK_RESPONSE

    return _best_containment_match(message) or _best_overlap_match(message) or FALLBACK_RESPONSE


def latest_user_message(messages):
    if not isinstance(messages, list):
        raise ChatbotError("Invalid messages format")
    for message in reversed(messages):
        if isinstance(message, dict) and message.get("role") == "user":
            return message.get("content") or ""
    raise ChatbotError("No user message found")


def sse_frame(payload):
    if isinstance(payload, str):
        return f"data: {payload}\n\n"
    return f"data: {json.dumps(payload)}\n\n"


def stream_response(text, delay=0.05):
    """Yield one SSE frame per whitespace-delimited token, then [DONE]."""
    for token in text.split():
        yield sse_frame({"content": token + " ", "role": "assistant"})
        if delay:
            time.sleep(delay)
    yield sse_frame("[DONE]")
