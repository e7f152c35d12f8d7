"""DHT exporter entrypoint.

Samples the DHT sensor and serves the readings as Prometheus metrics.

Usage: python -m dht_exporter --sensor-type 3 --sensor-pin 4 -l :2112
"""
import sys

from dht_exporter.exporter import main

if __name__ == "__main__":
    sys.exit(main())
