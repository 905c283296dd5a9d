from taskalias.cli import main

raise SystemExit(main())
