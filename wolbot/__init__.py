"""wolbot — Wake-on-LAN chat bot.

Lets a chat user register one machine (MAC + IPv4), power it on with a
magic packet and check whether it answers ping.

Quickstart::

    from wolbot.registry import DeviceRegistry
    from wolbot.control import DeviceController
    from wolbot.router import CommandRouter

    router = CommandRouter(DeviceRegistry("./data/data.json"), DeviceController())
    outcome = await router.handle("U1234", "#aa:bb:cc:dd:ee:ff")

Run the webhook server with::

    python -m wolbot.server
"""

__version__ = "1.0.0"
