from ticketcal.app import main

raise SystemExit(main())
