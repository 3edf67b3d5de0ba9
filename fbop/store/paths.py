"""Logical document layout."""

FAMILIES = "families"
PARENTS = "parents"
CHILDREN = "children"
TRANSACTIONS = "transactions"
DEVICES = "devices"
INVITES = "invites"
INVITE_CODES = "inviteCodes"
CHILD_LOOKUP = "childLookup"


def family(family_id: str) -> str:
    return f"{FAMILIES}/{family_id}"


def parents(family_id: str) -> str:
    return f"{family(family_id)}/{PARENTS}"


def parent(family_id: str, uid: str) -> str:
    return f"{parents(family_id)}/{uid}"


def children(family_id: str) -> str:
    return f"{family(family_id)}/{CHILDREN}"


def child(family_id: str, child_id: str) -> str:
    return f"{children(family_id)}/{child_id}"


def transactions(family_id: str, child_id: str) -> str:
    return f"{child(family_id, child_id)}/{TRANSACTIONS}"


def transaction(family_id: str, child_id: str, transaction_id: str) -> str:
    return f"{transactions(family_id, child_id)}/{transaction_id}"


def devices(family_id: str, child_id: str) -> str:
    return f"{child(family_id, child_id)}/{DEVICES}"


def device(family_id: str, child_id: str, uid: str) -> str:
    return f"{devices(family_id, child_id)}/{uid}"


def family_invites(family_id: str) -> str:
    return f"{family(family_id)}/{INVITES}"


def invite_code(code: str) -> str:
    return f"{INVITE_CODES}/{code}"


def child_lookup(code: str) -> str:
    return f"{CHILD_LOOKUP}/{code}"
