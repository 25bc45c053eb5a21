#!/usr/bin/env python3
import sys

print("Running preflight import check...")
try:
    import handoff.cli
    print("Import handoff.cli: OK")

    import handoff.render.qr
    print("Import handoff.render.qr: OK")

    print("Preflight check passed.")
    sys.exit(0)
except Exception as e:
    print(f"Preflight check FAILED: {e}")
    import traceback
    traceback.print_exc()
    sys.exit(1)
