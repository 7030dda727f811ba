from ream.cli import main

raise SystemExit(main())
