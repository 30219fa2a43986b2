from typing import NewType

ERC20Units = NewType("ERC20Units", int)
