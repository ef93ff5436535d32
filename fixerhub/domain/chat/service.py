"""Chat service - answers help-chat messages from matched intents and live data"""

import logging
from typing import Optional

from sqlalchemy.orm import Session

from ...models import User
from ...shared.formatting import format_currency
from ..bookings.repository import BookingRepository
from ..users.repository import UserRepository
from .history import ConversationStore, conversation_key, conversation_store
from .intents import detect_intent

logger = logging.getLogger(__name__)

STATIC_RESPONSES = {
    "emergency": (
        "That sounds urgent! 🚨 Tell me which service you need (plumbing, electrical, etc.) "
        "and I'll point you to providers who can help right away."
    ),
    "pricing": (
        "Pricing depends on the service and the provider. 💰\n\n"
        "• Providers list an hourly rate on their profile\n"
        "• You can request a quotation before you commit\n"
        "• You pay by card or bank transfer once the job is completed\n\n"
        "Which service are you interested in?"
    ),
    "how_it_works": (
        "Here's how FixerHub works:\n\n"
        "🔍 Step 1: Search for the service you need\n"
        "⭐ Step 2: Compare providers by certification level and rating\n"
        "📅 Step 3: Book and agree on a quotation\n"
        "💳 Step 4: Pay securely when the job is done\n"
        "✅ Step 5: Leave a review"
    ),
    "support": (
        "I'm here to help! 😊 If something went wrong with a booking or a payment, you can report a "
        "dispute from the booking page and an admin will review it. You can also reach us at support@fixerhub.com."
    ),
    "certification": (
        "Providers earn points for every certification an admin approves. 🏅\n\n"
        "• Bronze: under 50 points\n"
        "• Silver: 50+\n"
        "• Gold: 150+\n"
        "• Platinum: 300+\n"
        "• Diamond: 500+\n\n"
        "Search results list the most certified providers first."
    ),
    "fallback": (
        "I want to make sure I understand what you need. Could you tell me a bit more? "
        "You can ask me to find a service, check your bookings or explain how payments work."
    ),
}


class ChatService:
    """Service layer for the help chat"""

    def __init__(self, db: Session, store: Optional[ConversationStore] = None):
        self.db = db
        self.store = store or conversation_store

    def handle_message(
        self, message: str, user_id: Optional[int] = None, session_id: Optional[str] = None
    ) -> dict:
        key = conversation_key(session_id, user_id)
        user = UserRepository.get_by_id(self.db, user_id) if user_id else None

        self.store.append(key, "user", message)
        intent, category = detect_intent(message)
        response = self._respond(intent, category, user)
        entry = self.store.append(key, "bot", response)
        self.store.cleanup()

        logger.debug(f"💬 Chat intent '{intent}' for conversation {key}")
        return {"response": response, "intent": intent, "sessionId": key, "timestamp": entry["timestamp"]}

    def get_history(self, user_id: Optional[int] = None, session_id: Optional[str] = None) -> dict:
        messages, last_activity = self.store.history(conversation_key(session_id, user_id))
        return {"messages": messages, "lastActivity": last_activity}

    def clear(self, user_id: Optional[int] = None, session_id: Optional[str] = None) -> bool:
        return self.store.clear(conversation_key(session_id, user_id))

    def _respond(self, intent: str, category: Optional[str], user: Optional[User]) -> str:
        if intent == "greeting":
            name = f" {user.name}" if user else ""
            return f"Hello{name}! Welcome to FixerHub. What kind of home service are you looking for today?"
        if intent == "find_service":
            return self._service_response(category)
        if intent == "booking_status":
            return self._booking_status_response(user)
        if intent == "booking":
            return self._booking_response(user)
        if intent == "review":
            return self._review_response(user)
        return STATIC_RESPONSES.get(intent, STATIC_RESPONSES["fallback"])

    def _service_response(self, category: str) -> str:
        providers = UserRepository.search_providers(self.db, category=category)[:3]
        if not providers:
            return (
                f"I couldn't find any {category} providers right now. "
                "Try the search page with a different location, or check back soon!"
            )

        lines = [f"Here are top {category} providers on FixerHub:\n"]
        for index, provider in enumerate(providers, start=1):
            rate = f" | {format_currency(provider.hourly_rate)}/hr" if provider.hourly_rate else ""
            lines.append(
                f"{index}. {provider.name} ({provider.certification_level.title()}) "
                f"⭐ {provider.rating:.1f} - {provider.location}{rate}"
            )
        lines.append("\nWould you like to book one of them?")
        return "\n".join(lines)

    def _booking_response(self, user: Optional[User]) -> str:
        response = "I'd love to help you book a service! 📅"
        if user and BookingRepository.get_seeker_bookings(self.db, user.id):
            response += " Welcome back!"
        return (
            response + "\n\nTell me:\n1. What type of service do you need?\n"
            "2. When would you like the appointment?\n3. Is it urgent?"
        )

    def _booking_status_response(self, user: Optional[User]) -> str:
        if not user:
            return "Please log in so I can look up your bookings."

        bookings = BookingRepository.get_seeker_bookings(self.db, user.id)[:5]
        if not bookings:
            return "I don't see any bookings on your account yet. Would you like to schedule a service?"

        lines = ["Here are your recent bookings:\n"]
        for index, booking in enumerate(bookings, start=1):
            provider = booking.service_provider.name if booking.service_provider else "Unknown provider"
            lines.append(f"{index}. {booking.description[:40]} with {provider} - {booking.status.replace('_', ' ')}")
            lines.append(f"   Scheduled: {booking.date:%Y-%m-%d} {booking.time}")
        return "\n".join(lines)

    def _review_response(self, user: Optional[User]) -> str:
        response = "Reviews help other customers choose and help providers improve. ⭐"
        if user:
            unreviewed = [
                b
                for b in BookingRepository.get_seeker_bookings(self.db, user.id, status="completed")
                if b.review_record is None
            ]
            if unreviewed:
                response += f"\n\nYou have {len(unreviewed)} completed booking(s) waiting for a review."
        return response
