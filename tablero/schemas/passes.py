"""
schemas/passes.py
-----------------

Card holder data written onto a loyalty pass.
"""

from __future__ import annotations

from typing import Union

from pydantic import BaseModel


class CardHolder(BaseModel):
    id: str
    nombre: str
    nivel: str
    puntos: Union[int, str]
