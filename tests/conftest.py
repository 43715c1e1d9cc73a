import pytest


@pytest.fixture
def met_payload():
    """Trimmed Locationforecast compact response for Oslo."""
    return {
        "type": "Feature",
        "geometry": {"type": "Point", "coordinates": [10.75, 59.91, 12]},
        "properties": {
            "meta": {
                "updated_at": "2024-10-15T10:12:34Z",
                "units": {
                    "air_pressure_at_sea_level": "hPa",
                    "air_temperature": "celsius",
                    "wind_speed": "m/s",
                },
            },
            "timeseries": [
                {
                    "time": "2024-10-15T11:00:00Z",
                    "data": {
                        "instant": {
                            "details": {
                                "air_pressure_at_sea_level": 1012.3,
                                "air_temperature": 7.1,
                                "wind_speed": 3.4,
                            }
                        },
                        "next_1_hours": {"summary": {"symbol_code": "cloudy"}},
                    },
                },
                {
                    "time": "2024-10-15T12:00:00Z",
                    "data": {
                        "instant": {
                            "details": {"air_temperature": 7.6, "wind_speed": 3.9}
                        }
                    },
                },
                {
                    "time": "2024-10-15T13:00:00Z",
                    "data": {"instant": {"details": {"air_temperature": 8.0}}},
                },
            ],
        },
    }
