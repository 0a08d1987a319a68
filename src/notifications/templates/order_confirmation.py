"""Order confirmation template — sent once when payment completes."""

from notifications.templates._format import address_block, item_lines, money


class OrderConfirmationTemplate:
    notification_type = "OrderConfirmation"

    @staticmethod
    def render(context: dict) -> dict:
        order_number = context.get("order_number", "N/A")
        name = context.get("customer_name") or "there"
        sections = [
            f"Hi {name},",
            f"Thanks for your order! Order #{order_number} is confirmed.",
            "Items:\n" + item_lines(context.get("items", [])),
            "\n".join(
                [
                    f"Subtotal: {money(context.get('subtotal'))}",
                    *(
                        [f"Discount: -{money(context.get('discount_amount'))}"]
                        if float(context.get("discount_amount") or 0) > 0
                        else []
                    ),
                    f"Shipping: {money(context.get('shipping_cost'))}",
                    f"Total: {money(context.get('total'))}",
                ]
            ),
        ]

        address = address_block(context.get("shipping_address"))
        if address:
            sections.append("Shipping to:\n" + address)

        links = context.get("download_links") or []
        if links:
            sections.append(
                "Your downloads are ready:\n" + "\n".join(f"  - {link['name']}: {link['url']}" for link in links)
            )

        if context.get("has_physical_items", True):
            sections.append("Physical items usually arrive within 5-10 business days. We'll email tracking once they ship.")

        return {
            "subject": f"Order Confirmed - #{order_number}",
            "body": "\n\n".join(sections),
        }
