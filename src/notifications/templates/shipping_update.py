"""Shipping update template — sent once when a tracking number first appears."""

from notifications.templates._format import address_block, item_lines

USPS_TRACKING_URL = "https://tools.usps.com/go/TrackConfirmAction?tLabels={tracking_number}"


class ShippingUpdateTemplate:
    notification_type = "ShippingUpdate"

    @staticmethod
    def render(context: dict) -> dict:
        order_number = context.get("order_number", "N/A")
        tracking_number = context.get("tracking_number", "N/A")
        carrier = context.get("carrier") or "USPS"
        tracking_url = context.get("tracking_url") or USPS_TRACKING_URL.format(tracking_number=tracking_number)
        name = context.get("customer_name") or "there"

        sections = [
            f"Hi {name},",
            f"Great news! Your order #{order_number} has shipped.",
            f"Carrier: {carrier}\nTracking Number: {tracking_number}\nTrack your package: {tracking_url}",
            "Items:\n" + item_lines(context.get("items", [])),
        ]
        address = address_block(context.get("shipping_address"))
        if address:
            sections.append("Shipping to:\n" + address)

        return {
            "subject": f"Your Order Has Shipped! - #{order_number}",
            "body": "\n\n".join(sections),
        }
