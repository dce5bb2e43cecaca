import stripe
from flask import Blueprint, request, jsonify, current_app

from services import bookings as booking_service
from services.errors import BookingNotFoundError, InvalidTransitionError

webhook_bp = Blueprint("webhook", __name__, url_prefix="/webhooks")

FAILURE_EVENTS = ("checkout.session.expired", "checkout.session.async_payment_failed")


@webhook_bp.post("/stripe")
def stripe_webhook():
    endpoint_secret = current_app.config.get("STRIPE_WEBHOOK_SECRET")
    sig_header = request.headers.get("Stripe-Signature")
    payload = request.data

    if not endpoint_secret:
        return jsonify(error="Webhook secret not configured"), 500
    if not sig_header:
        return jsonify(error="Invalid webhook signature"), 400

    try:
        event = stripe.Webhook.construct_event(payload, sig_header, endpoint_secret)
    except (ValueError, stripe.SignatureVerificationError):
        return jsonify(error="Invalid webhook signature"), 400

    event_type = event["type"]
    if event_type != "checkout.session.completed" and event_type not in FAILURE_EVENTS:
        return jsonify(received=True), 200

    session = event["data"]["object"]
    meta = session.get("metadata") or {}
    booking_id = meta.get("booking_id")
    if not booking_id or not str(booking_id).isdigit():
        current_app.logger.warning("stripe event %s without booking_id", event.get("id"))
        return jsonify(received=True), 200

    ref = session.get("payment_intent") or session.get("id")
    try:
        if event_type == "checkout.session.completed":
            booking_service.confirm_booking(int(booking_id), payment_ref=ref)
        else:
            booking_service.fail_booking(int(booking_id), reason=event_type)
    except (BookingNotFoundError, InvalidTransitionError) as exc:
        # Acknowledged; booking needs manual review.
        current_app.logger.warning("stripe event %s for booking %s ignored: %s", event.get("id"), booking_id, exc.message)

    return jsonify(received=True), 200
