import secrets

import shortuuid


def generate_shortuuid() -> str:
    return shortuuid.uuid()


def generate_invite_token() -> str:
    return secrets.token_hex(32)
