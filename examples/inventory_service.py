from __future__ import annotations

import re

from pydantic import BaseModel
from starlette.testclient import TestClient

from genro_structhttp import (
    DEFAULT_MATCHER,
    MatchResult,
    RequestContext,
    StatusError,
    build_handler,
    route_path,
)


class Item(BaseModel):
    sku: str
    qty: int


class Inventory:
    """A plain object: no routing code, just methods."""

    def __init__(self):
        self.items: dict[str, int] = {"part-123": 42}

    def add(self, item: Item) -> tuple[Item, StatusError | None]:
        if item.qty <= 0:
            return item, StatusError(422, f"quantity must be positive, got {item.qty}")
        self.items[item.sku] = self.items.get(item.sku, 0) + item.qty
        return Item(sku=item.sku, qty=self.items[item.sku]), None

    def get_stock(self, sku: str) -> tuple[dict, StatusError | None]:
        if sku not in self.items:
            return {}, StatusError(404, f"unknown sku {sku!r}")
        return {"sku": sku, "qty": self.items[sku]}, None

    def report(self, ctx: RequestContext) -> bytes:
        lines = [f"{sku};{qty}" for sku, qty in sorted(self.items.items())]
        return ("\n".join(lines) + "\n").encode()

    def reset(self) -> None:
        self.items.clear()


def rest_style(request, method_name, params):
    """GET /stock/<sku> for get_* methods, default convention for the rest."""
    if not method_name.startswith("get_"):
        return DEFAULT_MATCHER.match(request, method_name, params)
    found = re.match(rf"^/{method_name[4:]}/([\w-]+)$", route_path(request))
    if request.method != "GET" or found is None:
        return MatchResult.no_match()
    return MatchResult.matched(found.group(1))


if __name__ == "__main__":
    client = TestClient(build_handler(Inventory(), matcher=rest_style))

    print("--- Inventory over HTTP ---")
    print(client.get("/stock/part-123").json())
    print(client.post("/add", json={"sku": "part-123", "qty": 8}).json())
    print(client.post("/add", json={"sku": "bolt", "qty": 0}).json())
    print(client.get("/stock/nope").status_code)
    print(client.post("/report").text)
    print(client.post("/reset").status_code)
