#!/usr/bin/env python3
# -*- coding: utf-8 -*-

"""
Downstream adapters and codecs

Downstream = "southbound" side of the bridge (PLCs and other data sources)

Each downstream implementation is placed into its own package under:

  twin.plc_ditto.client.downstream.<name>/

Example:
  - s7         (Siemens S7 PLC via python-snap7)
  - file_poll  (read values from JSON file; useful for tests and simulation)
  - http_poll  (fetch JSON from HTTP; useful for quick experiments)

Adapters are selected by URL scheme through DriverManager
"""
