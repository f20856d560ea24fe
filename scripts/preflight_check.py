#!/usr/bin/env python3
import sys
import os

print("Running preflight import check...")
try:
    # Set dummy env vars to avoid KeyErrors during config load if any
    os.environ.setdefault("REDIS_URL", "redis://localhost:6379/0")

    import helpdesk.main
    print("Import helpdesk.main: OK")

    import helpdesk.queue.jobs
    print("Import helpdesk.queue.jobs: OK")

    import helpdesk.render.notice_pdf
    print("Import helpdesk.render.notice_pdf: OK")

    from helpdesk.settings import validate_runtime_config
    from helpdesk.core.errors import FatalConfigError
    try:
        validate_runtime_config()
        print("Runtime config: OK")
    except FatalConfigError as e:
        print(f"Runtime config: WARN {e}")

    print("Preflight check passed.")
    sys.exit(0)
except Exception as e:
    print(f"Preflight check FAILED: {e}")
    import traceback
    traceback.print_exc()
    sys.exit(1)
