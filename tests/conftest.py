import pytest

from wellfield.models.hydraulics import Well, WellKind


@pytest.fixture
def pumping_well():
    return Well(
        id=1,
        name="P-1",
        kind=WellKind.PUMPING,
        easting=0.0,
        northing=0.0,
        depth=60.0,
        ground_elevation=100.0,
        bedrock_elevation=40.0,
        conductivity=15.0,
        flow=10.0,
        pumping_hours=24.0,
        static_level=5.0,
        dynamic_level=12.0,
    )


@pytest.fixture
def observation_factory():
    def make(well_id, easting, dynamic_level, northing=0.0):
        return Well(
            id=well_id,
            name=f"O-{well_id}",
            kind=WellKind.OBSERVATION,
            easting=easting,
            northing=northing,
            depth=60.0,
            ground_elevation=100.0,
            bedrock_elevation=40.0,
            conductivity=15.0,
            static_level=5.0,
            dynamic_level=dynamic_level,
        )

    return make
