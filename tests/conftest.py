import numpy as np
import pandas as pd
import pytest

import config


def make_joined(sites, n_days, start="2021-01-13", concentrations=None, precip=None):
    """
    Build a joined (site, date) table with daily rows per site.

    ``concentrations`` / ``precip`` are per-day sequences reused for every
    site; defaults give distinct, easy-to-sum values.
    """
    dates = pd.date_range(start, periods=n_days, freq="D")
    if concentrations is None:
        concentrations = [50.0 if i % 2 == 0 else 500.0 for i in range(n_days)]
    rows = []
    for s_idx, site in enumerate(sites):
        site_precip = precip if precip is not None else [float(i + 1 + 100 * s_idx) for i in range(n_days)]
        for i, date in enumerate(dates):
            rows.append({
                "site": site,
                "date": date,
                "enterococci": float(concentrations[i]),
                "water_temp": 20.0 + i,
                "conductivity": 50.0 + s_idx + 0.1 * i,
                "precip": site_precip[i],
            })
    return pd.DataFrame(rows).sort_values(["site", "date"]).reset_index(drop=True)


def make_random_joined(n_sites=3, n_days=60, seed=0):
    """Noisy multi-site table where rain drives concentrations up."""
    rng = np.random.default_rng(seed)
    dates = pd.date_range("2020-11-02", periods=n_days, freq="D")
    frames = []
    for s_idx in range(n_sites):
        rain = rng.exponential(4.0, n_days)
        recent = pd.Series(rain).rolling(3, min_periods=1).sum().to_numpy()
        log_conc = 3.6 + 0.08 * recent + rng.normal(0, 0.9, n_days)
        frames.append(pd.DataFrame({
            "site": f"Beach {chr(ord('A') + s_idx)}",
            "date": dates,
            "enterococci": np.round(np.exp(log_conc)),
            "water_temp": 18 + rng.normal(0, 1.5, n_days),
            "conductivity": 52 + rng.normal(0, 2.0, n_days),
            "precip": np.round(rain, 1),
        }))
    return pd.concat(frames).sort_values(["site", "date"]).reset_index(drop=True)


@pytest.fixture
def two_site_joined():
    return make_joined(["Beach A", "Beach B"], n_days=10)


@pytest.fixture
def random_joined():
    return make_random_joined()


@pytest.fixture
def small_forests(monkeypatch):
    """Keep forests small so model tests stay fast."""
    monkeypatch.setattr(config, "RF_REGRESSION_PARAMS", {"n_estimators": 20, "min_samples_leaf": 1})
    monkeypatch.setattr(config, "RF_CLASSIFICATION_PARAMS", {"n_estimators": 20, "min_samples_leaf": 1})
    monkeypatch.setattr(config, "XGBRF_PARAMS", {"n_estimators": 10, "max_depth": 4})


@pytest.fixture
def source_frames():
    """Water-quality and weather frames using source column names."""
    water_quality = pd.DataFrame({
        "Swim Site": ["Beach B", "Beach A", "Beach A", "Beach B"],
        "Date": ["14/01/2021", "15/01/2021", "13/01/2021", "13/01/2021"],
        "Enterococci (cfu/100ml)": ["<10", "250", "40", "n/a"],
        "Water temperature (°C)": [21.0, 22.5, 21.5, 20.0],
        "Conductivity (mS/cm)": [52.1, 51.0, 50.8, 53.3],
    })
    weather = pd.DataFrame({
        "Date": ["13/01/2021", "14/01/2021"],
        "Rainfall amount (millimetres)": [0.0, 12.4],
    })
    return water_quality, weather
