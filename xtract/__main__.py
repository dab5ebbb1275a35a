from xtract.cli import main

raise SystemExit(main())
