from jitlens.cli import main

raise SystemExit(main())
