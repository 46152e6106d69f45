#!/usr/bin/env python3
"""
Keytab Generation Example

Demonstrates how to use keytabkit to build and inspect keytabs.

Features:
1. Password path: AES keys derived locally from a password
2. Replication path: keys supplied by a directory replication client
3. Policy guardrails (RC4 rejected on the password path)
4. Masked keytab inspection
"""

import tempfile
from pathlib import Path

from keytabkit import (
    GeneratorConfig,
    KeySet,
    KeytabGenerator,
    PrincipalDescriptor,
    SaltProfile,
)
from keytabkit.core.exceptions import EtypeUnsupportedForPath


def main():
    """Demonstrate keytab generation."""

    print("=" * 60)
    print("keytabkit - Keytab Generation")
    print("=" * 60)
    print()

    workdir = Path(tempfile.mkdtemp(prefix="keytabkit-example-"))
    generator = KeytabGenerator(
        config=GeneratorConfig(salt_profile=SaltProfile.WINDOWS, overwrite=True)
    )

    account = PrincipalDescriptor.parse("websvc@EXAMPLE.COM")
    spn = PrincipalDescriptor.parse("HTTP/web.example.com@EXAMPLE.COM")

    # ==========================================================================
    # EXAMPLE 1: Password Path
    # ==========================================================================
    print("1. Derive AES keys from a password")
    print("-" * 40)

    report = generator.generate_from_password(
        workdir / "websvc.keytab",
        [account, spn],
        password="Example-Passw0rd",
        kvno=3,
    )

    print(f"   Keytab: {report.path}")
    print(f"   Encryption types: {list(report.selected)}")
    print(f"   Entries written: {report.entry_count}")
    print()

    # ==========================================================================
    # EXAMPLE 2: Password Path Guardrail
    # ==========================================================================
    print("2. Request RC4 on the password path")
    print("-" * 40)

    try:
        generator.generate_from_password(
            workdir / "rc4.keytab", [account], password="Example-Passw0rd", include=["rc4"]
        )
    except EtypeUnsupportedForPath as e:
        print(f"   Rejected: {e.message}")
    print()

    # ==========================================================================
    # EXAMPLE 3: Replication Path
    # ==========================================================================
    print("3. Write replicated keys")
    print("-" * 40)

    # Stand-in for keys returned by a replication client
    key_sets = [
        KeySet(kvno=4, keys={17: bytes(range(16)), 18: bytes(range(32)), 23: bytes(16)}),
        KeySet(kvno=5, keys={17: bytes(16), 18: bytes(32)}),
    ]
    report = generator.generate_from_key_sets(
        workdir / "replicated.keytab",
        [spn],
        key_sets,
        include=["aes256", "aes128", "aes256-sha2"],
    )

    print(f"   Encryption types: {list(report.selected)}")
    for warning in report.warnings:
        print(f"   Warning: {warning}")
    print()

    # ==========================================================================
    # EXAMPLE 4: Inspect
    # ==========================================================================
    print("4. Inspect the replicated keytab (masked)")
    print("-" * 40)

    for record in generator.inspect(report.path):
        principal = "/".join(record["components"]) + "@" + record["realm"]
        print(f"   kvno={record['kvno']:<3} {record['etype_name']:<26} {principal}  {record['key']}")
    print()


if __name__ == "__main__":
    main()
