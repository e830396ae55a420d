import sys

from pkgbuild_custom.main import main

sys.exit(main())
