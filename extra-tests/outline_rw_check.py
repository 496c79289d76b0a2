#!/usr/bin/env python3

import os
import sys

import outline_rw

top = sys.argv[1]
count = 0

for root, dirs, files in os.walk(top):
    for name in files:
        if os.path.splitext(name)[1] not in (".org", ".md"):
            continue

        path = os.path.join(root, name)
        count += 1
        try:
            with open(path) as f:
                outline_rw.load(f, keywords=outline_rw.GenericKeywords(), extra_cautious=True)
        except (outline_rw.ParseError, outline_rw.NonReproducibleDocument):
            import traceback

            traceback.print_exc()
            print(f"== On {path}")
            sys.exit(1)

print("[OK] Check passed on {} files".format(count))
