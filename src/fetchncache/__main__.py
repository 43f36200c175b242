from fetchncache.cli import main

raise SystemExit(main())
