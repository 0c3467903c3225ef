from .web_app import main

raise SystemExit(main())
