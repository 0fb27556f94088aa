#!/usr/bin/env python
"""Produce a bcrypt hash for a new entry in ``lagerbuch/constants/employees.py``.

Usage:
  python -m scripts.hash_password            # prompts for the password
  python -m scripts.hash_password --rounds 12
"""
from __future__ import annotations
import argparse, getpass, sys

from lagerbuch.services.credentials import DEFAULT_BCRYPT_ROUNDS, hash_password, verify_password


def main(argv: list[str]) -> int:
    p = argparse.ArgumentParser(description="Hash an employee password with bcrypt")
    p.add_argument('--rounds', type=int, default=DEFAULT_BCRYPT_ROUNDS, help='bcrypt cost factor')
    p.add_argument('--verify', metavar='HASH', help='Check the entered password against HASH instead')
    args = p.parse_args(argv)

    raw = getpass.getpass('Passwort: ')
    if not raw:
        print('Leeres Passwort', file=sys.stderr)
        return 2
    if args.verify:
        ok = verify_password(raw, args.verify)
        print('OK' if ok else 'MISMATCH')
        return 0 if ok else 1
    if getpass.getpass('Wiederholen: ') != raw:
        print('Passwörter stimmen nicht überein', file=sys.stderr)
        return 2
    print(hash_password(raw, rounds=args.rounds))
    return 0


if __name__ == '__main__':  # pragma: no cover
    sys.exit(main(sys.argv[1:]))
