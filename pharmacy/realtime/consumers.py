import json
from channels.generic.websocket import AsyncWebsocketConsumer

from pharmacy.services.ledger import INVENTORY_GROUP


class InventoryUpdatesConsumer(AsyncWebsocketConsumer):
    """Streams committed stock levels to pharmacy staff dashboards."""
    GROUP = INVENTORY_GROUP
    STAFF_ROLES = {"pharmacist", "admin"}

    async def connect(self):
        user = self.scope.get("user")
        if not (user and user.is_authenticated and getattr(user, "role", None) in self.STAFF_ROLES):
            await self.close(code=4403)
            return
        await self.channel_layer.group_add(self.GROUP, self.channel_name)
        await self.accept()
        await self.send(json.dumps({"type": "welcome", "message": "connected"}))

    async def disconnect(self, close_code):
        await self.channel_layer.group_discard(self.GROUP, self.channel_name)

    async def inventory_stock(self, event):
        # event: {"type": "inventory.stock", "itemId": "...", "currentStock": int, ...}
        await self.send(json.dumps(event))
