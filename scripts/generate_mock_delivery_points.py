import pandas as pd
import numpy as np

# Center around Bangalore (same corridor the route selection demo drives)
ORIGIN = (12.9716, 77.5946)
DESTINATION = (12.9816, 77.6046)


def generate_mock_delivery_points(num_points=200, corridor_share=0.3, output_file="delivery_points_generated.csv", seed=None):
    """
    Generates a dataset of delivery points for testing route matching.
    A share of the points is scattered tightly along the straight
    origin -> destination corridor (within ~100 m) so that most routes
    between the two pick some of them up; the rest are spread over the
    surrounding ~5 km.
    """
    rng = np.random.default_rng(seed)

    corridor_count = int(round(num_points * corridor_share))
    data = []

    for point_index in range(num_points):
        if point_index < corridor_count:
            # Somewhere along the corridor, jittered by up to ~0.0008 degrees (~90 m)
            fraction = rng.uniform(0.0, 1.0)
            lat = ORIGIN[0] + (DESTINATION[0] - ORIGIN[0]) * fraction + rng.uniform(-0.0008, 0.0008)
            lon = ORIGIN[1] + (DESTINATION[1] - ORIGIN[1]) * fraction + rng.uniform(-0.0008, 0.0008)
            area = "Corridor"
        else:
            # Wider area, roughly 0.05 degrees around the midpoint
            lat = (ORIGIN[0] + DESTINATION[0]) / 2 + rng.uniform(-0.05, 0.05)
            lon = (ORIGIN[1] + DESTINATION[1]) / 2 + rng.uniform(-0.05, 0.05)
            area = "City"

        data.append({
            "point_id": f"dp_{str(point_index + 1).zfill(5)}",
            "name": f"Delivery Point {point_index + 1}",
            "address": f"{area} Block {rng.integers(1, 50)}",
            "lat": np.round(lat, 6),
            "lon": np.round(lon, 6),
        })

    df = pd.DataFrame(data)
    df.to_csv(output_file, index=False)
    print(f"✅ Generated {num_points} delivery points and saved to '{output_file}'")

    print("\nPoints per area:")
    counts = df["address"].str.split(" ").str[0].value_counts()
    for name, count in counts.items():
        print(f"  {name}: {count} points")

    return df


if __name__ == "__main__":
    generate_mock_delivery_points(num_points=200, seed=42)
