"""
Seed Checklist — default Day 1–3 onboarding items.

Used by ``flask seed-checklist``. Idempotent: an item is skipped when one
with the same (day, title) already exists, active or not.
"""

import logging

from onboarding.models import db
from onboarding.models.checklist import ChecklistItem
from onboarding.services.catalog_service import validate_item_fields

logger = logging.getLogger(__name__)


# ═══════════════════════════════════════════════════════════════
# DEFAULT ITEMS: (day, category, title, summary, steps, notes)
# ═══════════════════════════════════════════════════════════════
DEFAULT_ITEMS = [
    # Day 1: account & device
    (1, "login", "Sign in to your PC",
     "Sign in to your laptop with the temporary password from IT.",
     ["Power on the laptop", "Enter your employee ID", "Enter the temporary password",
      "Set a new password when prompted"],
     "Passwords need 12+ characters with upper, lower and digits."),
    (1, "login", "Set up multi-factor authentication",
     "Register the Microsoft Authenticator app for your account.",
     ["Install Microsoft Authenticator on your phone", "Open https://aka.ms/mfasetup",
      "Scan the QR code", "Approve the test notification"],
     None),
    (1, "email", "Open Outlook",
     "Check that your mailbox and calendar are available.",
     ["Start Outlook", "Sign in with your company account", "Send a test mail to yourself"],
     None),
    (1, "chat", "Join Microsoft Teams",
     "Sign in to Teams and join your department channel.",
     ["Start Teams", "Sign in with your company account", "Join the team shared by your manager"],
     "Ask your trainer if you cannot find your team."),
    # Day 2: network & files
    (2, "network", "Connect to the office Wi-Fi",
     "Connect your laptop to the corporate wireless network.",
     ["Open network settings", "Select the corporate SSID", "Sign in with your company account"],
     None),
    (2, "vpn", "Set up VPN for remote work",
     "Install and test the VPN client before working from home.",
     ["Open Company Portal", "Install the VPN client", "Connect and confirm the intranet loads"],
     None),
    (2, "files", "Access shared drives",
     "Open your department's SharePoint site and OneDrive.",
     ["Open OneDrive and let it sync", "Open the department SharePoint site",
      "Pin the documents library to Explorer"],
     None),
    # Day 3: tools & policies
    (3, "printer", "Add a printer",
     "Install the floor printer and print a test page.",
     ["Open Settings > Printers", "Add the printer shown on the label", "Print a test page"],
     None),
    (3, "security", "Complete security awareness training",
     "Finish the mandatory e-learning on phishing and data handling.",
     ["Open the learning portal", "Start the security course", "Pass the final quiz"],
     "Due within your first week."),
    (3, "support", "Know how to contact the helpdesk",
     "Learn how to raise an IT ticket when something breaks.",
     ["Open the IT portal", "Create a test ticket", "Close the test ticket"],
     None),
]


def seed_default_items() -> int:
    """Insert missing default items; returns the number added.

    Does not commit; the caller owns the transaction.
    """
    existing = {(day, title) for day, title in db.session.query(ChecklistItem.day, ChecklistItem.title).all()}
    order_by_day = {}
    added = 0

    for day, category, title, summary, steps, notes in DEFAULT_ITEMS:
        order_index = order_by_day.get(day, 0)
        order_by_day[day] = order_index + 1
        if (day, title) in existing:
            continue
        fields = validate_item_fields({
            "day": day,
            "category": category,
            "title": title,
            "summary": summary,
            "steps": steps,
            "notes": notes,
            "orderIndex": order_index,
        })
        db.session.add(ChecklistItem(**fields))
        added += 1

    db.session.flush()
    logger.info("Seeded %d checklist items (%d already present)", added, len(DEFAULT_ITEMS) - added)
    return added
