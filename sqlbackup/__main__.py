from sqlbackup.cli import main

raise SystemExit(main())
