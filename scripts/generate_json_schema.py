"""
generate_json_schema
====================

This script exports JSON Schema definitions for the wire models of the
trading API client.  It uses Pydantic's built-in JSON schema generator to
produce schemas for the response models (``Order``, ``Position``,
``Account``, the two activity shapes, ...) and for the outbound order
bodies (``OrderSpec``, ``OrderTicket``, ``OrderReplacement``).  The
resulting schema can be used to generate clients in other languages
(e.g., TypeScript) using code generation tools such as
`json-schema-to-typescript`.

Usage
-----

Run this script from the project root and specify an output file:

.. code-block:: bash

    python scripts/generate_json_schema.py --out schemas.json

If no output file is provided, the schema will be printed to stdout.
"""

from __future__ import annotations

import argparse
import json
from typing import Any, Dict, Type

from pydantic import BaseModel
from pydantic.json_schema import models_json_schema

from apca import (
    Account,
    AccountConfigurations,
    Asset,
    Calendar,
    CancellationAttempt,
    Clock,
    NonTradeActivity,
    Order,
    OrderReplacement,
    OrderSpec,
    OrderTicket,
    PortfolioHistory,
    Position,
    TradeActivity,
    Watchlist,
)


def collect_models() -> Dict[str, Type[BaseModel]]:
    models = [
        Account,
        AccountConfigurations,
        Asset,
        Calendar,
        CancellationAttempt,
        Clock,
        NonTradeActivity,
        Order,
        OrderReplacement,
        OrderSpec,
        OrderTicket,
        PortfolioHistory,
        Position,
        TradeActivity,
        Watchlist,
    ]
    return {model.__name__: model for model in models}


def generate_schema(models: Dict[str, Type[BaseModel]]) -> Dict[str, Any]:
    # Nested and recursive references (order legs, watchlist assets) point
    # into the shared definitions table.
    _, defs = models_json_schema(
        [(model, "serialization") for model in models.values()],
        by_alias=True,
        ref_template="#/definitions/{model}",
    )
    return {
        "$schema": "http://json-schema.org/draft-07/schema#",
        "definitions": defs.get("$defs", {}),
    }


def parse_args() -> argparse.Namespace:
    ap = argparse.ArgumentParser(description="Generate JSON schemas for the API wire models.")
    ap.add_argument("--out", help="Output file path. Defaults to stdout if omitted.")
    return ap.parse_args()


def main() -> None:
    args = parse_args()
    schema = generate_schema(collect_models())
    if args.out:
        with open(args.out, "w", encoding="utf-8") as f:
            json.dump(schema, f, indent=2)
        print(f"Schema written to {args.out}")
    else:
        print(json.dumps(schema, indent=2))


if __name__ == "__main__":
    main()
