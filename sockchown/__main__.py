from sockchown.engine import main

raise SystemExit(main(prog="python -m sockchown"))
