"""Payment repository - Database operations for payments"""

from datetime import datetime
from typing import Optional

from sqlalchemy import func, or_
from sqlalchemy.orm import Session, joinedload

from ...models_payment import Payment
from ...shared.persistence import commit as commit_session


class PaymentRepository:
    """Repository for payment database operations"""

    @staticmethod
    def get_payment(db: Session, payment_id: int) -> Optional[Payment]:
        return (
            db.query(Payment)
            .options(joinedload(Payment.payer), joinedload(Payment.payee), joinedload(Payment.booking))
            .filter(Payment.id == payment_id)
            .first()
        )

    @staticmethod
    def get_by_intent_id(db: Session, payment_intent_id: str) -> Optional[Payment]:
        return db.query(Payment).filter(Payment.stripe_payment_intent_id == payment_intent_id).first()

    @staticmethod
    def get_latest_for_booking(
        db: Session, booking_id: int, payment_method: Optional[str] = None
    ) -> Optional[Payment]:
        query = db.query(Payment).filter(Payment.booking_id == booking_id)
        if payment_method:
            query = query.filter(Payment.payment_method == payment_method)
        return query.order_by(Payment.id.desc()).first()

    @staticmethod
    def create_payment(db: Session, commit: bool = True, **payment_data) -> Payment:
        payment = Payment(**payment_data)
        db.add(payment)
        if commit:
            commit_session(db, payment)
        else:
            db.flush()
        return payment

    @staticmethod
    def get_user_payments(
        db: Session,
        user_id: int,
        status: Optional[str] = None,
        payment_method: Optional[str] = None,
        page: int = 1,
        limit: int = 10,
    ) -> tuple[list[Payment], int]:
        """Payments where the user is payer or payee, newest first"""
        query = db.query(Payment).filter(or_(Payment.payer_id == user_id, Payment.payee_id == user_id))
        if status:
            query = query.filter(Payment.status == status)
        if payment_method:
            query = query.filter(Payment.payment_method == payment_method)

        total = query.count()
        payments = (
            query.options(joinedload(Payment.payer), joinedload(Payment.payee))
            .order_by(Payment.created_at.desc(), Payment.id.desc())
            .offset((page - 1) * limit)
            .limit(limit)
            .all()
        )
        return payments, total

    @staticmethod
    def get_payee_payments(db: Session, payee_id: int, statuses: tuple) -> list[Payment]:
        return (
            db.query(Payment)
            .options(joinedload(Payment.payer), joinedload(Payment.booking))
            .filter(Payment.payee_id == payee_id, Payment.status.in_(statuses))
            .order_by(Payment.created_at.desc(), Payment.id.desc())
            .all()
        )

    @staticmethod
    def get_stats(db: Session, user_id: int, since: datetime) -> dict:
        """Totals for payments sent and received since a point in time"""
        base = db.query(Payment).filter(Payment.created_at >= since)

        def _summary(query):
            count, amount = query.with_entities(func.count(Payment.id), func.coalesce(func.sum(Payment.amount), 0)).one()
            return {"count": count, "amount": float(amount)}

        received = base.filter(Payment.payee_id == user_id)
        sent = base.filter(Payment.payer_id == user_id)
        by_status = dict(
            base.filter(or_(Payment.payer_id == user_id, Payment.payee_id == user_id))
            .with_entities(Payment.status, func.count(Payment.id))
            .group_by(Payment.status)
            .all()
        )
        return {
            "received": _summary(received.filter(Payment.status == "confirmed")),
            "sent": _summary(sent.filter(Payment.status == "confirmed")),
            "pending": _summary(
                received.filter(Payment.status.in_(("pending_customer_action", "pending_provider_confirmation")))
            ),
            "refunded": _summary(base.filter(
                or_(Payment.payer_id == user_id, Payment.payee_id == user_id), Payment.status == "refunded"
            )),
            "byStatus": by_status,
        }
