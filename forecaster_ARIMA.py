#!/usr/bin/env python3
"""
ARIMA modeling and forecasting of FRED macroeconomic series (UNRATE, GDPC1, MICH).

Usage
-----
    python forecaster_ARIMA.py --help
    python forecaster_ARIMA.py
    python forecaster_ARIMA.py --series GDPC1 --horizon 8 --offline

The implementation lives in macro_forecaster_src/; see macro_forecaster_src/main.py
for the workflow and config/settings.yaml for the default run.
"""

import sys

if __name__ == "__main__":
    try:
        from macro_forecaster_src.main import main
    except ImportError as e:
        print(f"Error: Cannot import the modules: {e}")
        print("Please ensure the macro_forecaster_src/ directory is present.")
        sys.exit(1)
    main()
