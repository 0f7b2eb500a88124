from boxbox.events import notify_records_changed
from boxbox.exceptions import BoxNotFound
from boxbox.models.box import Box, Item, ITEM_AVAILABLE
from boxbox.repositories.box_repo import BoxRepo, ItemRepo
from boxbox.utils.clock import utcnow


def _parse_items_config(items_config):
    """[{"name", "image_url", "qty"}] -> validated list of (name, image_url, qty)."""
    parsed = []
    for cfg in items_config or []:
        name = (cfg.get("name") or "").strip()
        if not name:
            raise ValueError("item name is required")
        qty = int(cfg.get("qty", 1))
        if qty < 0:
            raise ValueError("qty cannot be negative")
        parsed.append((name, cfg.get("image_url") or None, qty))
    return parsed


class BoxService:
    @staticmethod
    def list_boxes():
        boxes = BoxRepo.list_all()
        counts = BoxRepo.item_counts()
        data = []
        for b in boxes:
            total, available = counts.get(b.id, (0, 0))
            data.append({
                "id": b.id,
                "name": b.name,
                "box_type": b.box_type,
                "cover_image_url": b.cover_image_url,
                "item_count": total,
                "available_count": available,
            })
        return data

    @staticmethod
    def get_box(box_id: int):
        box = BoxRepo.get(box_id)
        if not box:
            raise BoxNotFound("Box not found")
        return box

    @staticmethod
    def list_items(box_id: int):
        BoxService.get_box(box_id)
        return ItemRepo.list_by_box(box_id)

    @staticmethod
    def create_box(data: dict):
        name = (data.get("name") or "").strip()
        if not name:
            raise ValueError("name is required")
        items = _parse_items_config(data.get("items"))

        now = utcnow()
        box = Box(
            name=name,
            box_type=data.get("box_type"),
            cover_image_url=data.get("cover_image_url"),
            created_at=now,
            updated_at=now,
        )
        BoxRepo.add(box)

        for item_name, image_url, qty in items:
            for _ in range(qty):
                box.items.append(Item(name=item_name, image_url=image_url, status=ITEM_AVAILABLE))

        BoxRepo.commit()
        notify_records_changed(BoxService)
        return box

    @staticmethod
    def update_box(box_id: int, data: dict):
        """
        Updates box fields and reconciles item quantities per name:
        - more wanted: new available items are added
        - fewer wanted: only available items are removed, loaned ones stay
        - names missing from "items" are dropped when available
        Without an "items" key the item set is left alone.
        """
        box = BoxService.get_box(box_id)

        for k in ["name", "box_type", "cover_image_url"]:
            if k in data and data[k] is not None:
                setattr(box, k, str(data[k]).strip() if k == "name" else data[k])
        if not box.name:
            raise ValueError("name is required")

        if "items" in data:
            items = _parse_items_config(data.get("items"))
            existing = ItemRepo.list_by_box(box_id)
            keep_ids = set()

            for item_name, image_url, qty in items:
                matches = [i for i in existing if i.name == item_name]
                for m in matches:
                    m.image_url = image_url
                    m.updated_at = utcnow()

                if qty > len(matches):
                    keep_ids.update(m.id for m in matches)
                    for _ in range(qty - len(matches)):
                        box.items.append(Item(name=item_name, image_url=image_url, status=ITEM_AVAILABLE))
                elif qty < len(matches):
                    to_remove = len(matches) - qty
                    for m in matches:
                        if m.status == ITEM_AVAILABLE and to_remove > 0:
                            to_remove -= 1
                        else:
                            keep_ids.add(m.id)
                else:
                    keep_ids.update(m.id for m in matches)

            for i in existing:
                # never delete an item that is out on loan
                if i.id not in keep_ids and i.status == ITEM_AVAILABLE:
                    box.items.remove(i)

        box.updated_at = utcnow()
        BoxRepo.commit()
        notify_records_changed(BoxService)
        return box

    @staticmethod
    def delete_box(box_id: int):
        box = BoxService.get_box(box_id)
        if any(i.status != ITEM_AVAILABLE for i in box.items):
            raise ValueError("This box has items on loan. Returns must be completed first.")
        BoxRepo.delete(box)
        BoxRepo.commit()
        notify_records_changed(BoxService)
