"""Render router outcomes as LINE message objects.

Errors and help are plain text; confirmations and results are small flex
bubbles with ``status`` / ``poweron`` quick buttons.
"""

from __future__ import annotations

from typing import Any

from wolbot import outcomes as out

HELP_TEXT = """📖 Wake-on-LAN Bot — how to use

━━━━━━━━━━━━━━━━━━━━
📝 Registration
━━━━━━━━━━━━━━━━━━━━
1️⃣ Register the MAC address
   Send: #00:11:22:33:44:55

2️⃣ Register the IP address
   Send: @192.168.1.100

━━━━━━━━━━━━━━━━━━━━
⚡ Commands
━━━━━━━━━━━━━━━━━━━━
🔹 poweron — switch the machine on
🔹 status — check whether it is online
🔹 help or ? — show this message

━━━━━━━━━━━━━━━━━━━━
💡 Notes
━━━━━━━━━━━━━━━━━━━━
• Register the MAC before the IP
• Find the MAC with ipconfig /all (Windows) or ip link (Linux)
• The IP is the address of the machine you want to wake"""

NOT_REGISTERED_TEXT = (
    "❌ You are not registered yet\n\n"
    "Send #MAC-ADDRESS to register\n"
    "Example: #00:11:22:33:44:55"
)
IP_NOT_REGISTERED_TEXT = (
    "❌ No IP address registered\n\n"
    "Send @IP-ADDRESS to register\n"
    "Example: @192.168.1.100"
)
REGISTER_MAC_FIRST_TEXT = (
    "❌ Please register a MAC address first\n\n"
    "Send #MAC-ADDRESS\n"
    "Example: #00:11:22:33:44:55"
)
INVALID_MAC_TEXT = (
    "❌ Invalid MAC address\n\n"
    "Valid examples:\n"
    "#00:11:22:33:44:55\n"
    "#00-11-22-33-44-55"
)
INVALID_IP_TEXT = (
    "❌ Invalid IP address\n\n"
    "Valid examples:\n"
    "@192.168.1.100\n"
    "@10.0.0.1"
)
ERROR_TEXT = "❌ Something went wrong, please try again"

ONLINE_COLOR = "#1DB446"
OFFLINE_COLOR = "#DD0000"


def text_message(text: str) -> dict[str, Any]:
    return {"type": "text", "text": text}


def render_outcome(outcome: out.Outcome) -> list[dict[str, Any]] | None:
    """Return the reply messages for *outcome*, or ``None`` for no reply."""
    if isinstance(outcome, out.Ignored):
        return None
    if isinstance(outcome, out.HelpRequested):
        return [text_message(HELP_TEXT)]
    if isinstance(outcome, out.InvalidMac):
        return [text_message(INVALID_MAC_TEXT)]
    if isinstance(outcome, out.InvalidIp):
        return [text_message(INVALID_IP_TEXT)]
    if isinstance(outcome, out.NotRegistered):
        if outcome.command == "ip":
            return [text_message(REGISTER_MAC_FIRST_TEXT)]
        return [text_message(NOT_REGISTERED_TEXT)]
    if isinstance(outcome, out.IpNotRegistered):
        return [text_message(IP_NOT_REGISTERED_TEXT)]
    if isinstance(outcome, out.MacRegistered):
        return [_card(
            "MAC registered",
            "✅ MAC address registered",
            [("MAC", outcome.mac)],
            note="Next: send @IP-ADDRESS to enable status checks",
        )]
    if isinstance(outcome, out.IpRegistered):
        return [_card(
            "IP registered",
            "✅ IP address registered",
            [("IP", outcome.ip)],
            note="Ready: send poweron or status",
        )]
    if isinstance(outcome, out.PowerOnResult):
        result = "✅ Sent" if outcome.success else "❌ Failed"
        return [_card(
            f"Power on: {result}",
            "⚡ Power on",
            [("Result", result)],
            note="Check with status in a minute" if outcome.success else None,
        )]
    if isinstance(outcome, out.StatusResult):
        return [_status_card(outcome)]
    if isinstance(outcome, out.CommandFailed):
        return [text_message(ERROR_TEXT)]
    raise TypeError(f"No renderer for outcome {type(outcome).__name__}")


# ──────────────────────────────────────────────────────────────────
# Flex helpers
# ──────────────────────────────────────────────────────────────────

def _status_card(outcome: out.StatusResult) -> dict[str, Any]:
    if outcome.alive:
        status, color = "🟢 Online", ONLINE_COLOR
        if outcome.latency_ms is not None:
            note = f"Ping: {outcome.latency_ms:g}ms"
        else:
            note = "Ping: n/a"
    else:
        status, color = "🔴 Offline", OFFLINE_COLOR
        note = "Host did not answer"
    return _card(
        f"Machine status: {status}",
        "📊 Machine status",
        [
            ("MAC", outcome.mac or "-"),
            ("IP", outcome.ip),
            ("Status", status, color),
        ],
        note=note,
    )


def _row(label: str, value: str, color: str = "#666666") -> dict[str, Any]:
    return {
        "type": "box",
        "layout": "baseline",
        "spacing": "sm",
        "contents": [
            {"type": "text", "text": f"{label} :", "color": "#aaaaaa", "size": "sm", "flex": 2},
            {"type": "text", "text": value, "wrap": True, "color": color, "size": "sm", "flex": 5},
        ],
    }


def _button(label: str, text: str, style: str) -> dict[str, Any]:
    return {
        "type": "button",
        "style": style,
        "height": "sm",
        "action": {"type": "message", "label": label, "text": text},
    }


def _card(
    alt_text: str,
    title: str,
    rows: list[tuple[str, ...]],
    note: str | None = None,
) -> dict[str, Any]:
    body_rows = [_row(*r) for r in rows]
    if note:
        body_rows.append(_row("Note", note))
    return {
        "type": "flex",
        "altText": alt_text,
        "contents": {
            "type": "bubble",
            "body": {
                "type": "box",
                "layout": "vertical",
                "contents": [
                    {"type": "text", "text": title, "weight": "bold", "size": "lg"},
                    {
                        "type": "box",
                        "layout": "vertical",
                        "margin": "lg",
                        "spacing": "sm",
                        "contents": body_rows,
                    },
                ],
            },
            "footer": {
                "type": "box",
                "layout": "vertical",
                "spacing": "sm",
                "contents": [
                    _button("📊 Status", "status", "secondary"),
                    _button("⚡ Power on", "poweron", "primary"),
                ],
            },
        },
    }
