import time
import statistics
import random
import sys
import psutil
from fastapi.testclient import TestClient

from deploy.app import app
from openrtb_client.bidding.exceptions import NoBidResponseError
from openrtb_client.bidding.requester import BidRequester

ENDPOINT = "http://testserver/openrtb2/auction"


def generate_random_request(i):
    n_imps = random.choice([0, 1, 1, 2, 3])
    return {
        "id": f"bench_{i}",
        "imp": [
            {"id": str(j + 1), "banner": {"w": 300, "h": 250}, "bidfloor": round(random.uniform(0.1, 5.0), 2)}
            for j in range(n_imps)
        ],
        "site": {
            "domain": f"site-{random.randint(1, 500)}.com",
            "page": f"http://site-{random.randint(1, 500)}.com/page",
        },
        "device": {
            "ua": "Mozilla/5.0 (Macintosh; Intel Mac OS X 10_15_7) AppleWebKit/537.36 (KHTML, like Gecko) Chrome/91.0.4472.114 Safari/537.36",
            "ip": f"192.168.1.{random.randint(1, 255)}",
        },
        "user": {"id": f"v_{random.randint(1, 100000)}"},
        "tmax": 120,
    }


def benchmark(n=2000):
    print("Starting in-process stub exchange...")
    requester = BidRequester(http_client=TestClient(app))

    print(f"Generating {n} requests...")
    requests = [generate_random_request(i) for i in range(n)]

    print("Warming up...")
    for _ in range(50):
        requester.request_v26(ENDPOINT, {"id": "warmup", "imp": [{"id": "1"}]})

    print("Running benchmark...")
    latencies = []
    no_bids = 0
    start_mem = psutil.Process().memory_info().rss / 1024 / 1024

    for req in requests:
        t0 = time.perf_counter_ns()
        try:
            requester.request_v26(ENDPOINT, req)
        except NoBidResponseError:
            no_bids += 1
        t1 = time.perf_counter_ns()
        latencies.append((t1 - t0) / 1_000_000.0) # ms

    end_mem = psutil.Process().memory_info().rss / 1024 / 1024

    avg = statistics.mean(latencies)
    p50 = statistics.median(latencies)
    p95 = sorted(latencies)[int(n * 0.95)]
    p99 = sorted(latencies)[int(n * 0.99)]

    print("\n" + "="*30)
    print(" BENCHMARK RESULTS")
    print("="*30)
    print(f"Requests sent:      {n}")
    print(f"No-bid responses:   {no_bids}")
    print(f"Average Latency:    {avg:.4f} ms")
    print(f"P50 Latency:        {p50:.4f} ms")
    print(f"P95 Latency:        {p95:.4f} ms")
    print(f"P99 Latency:        {p99:.4f} ms")
    print("-" * 30)
    print(f"Memory Usage:       {end_mem:.2f} MB")
    print(f"Memory Growth:      {end_mem - start_mem:.2f} MB")
    print("="*30)

    if avg > 10.0:
        print("FAILED: Average round-trip latency > 10ms")
        sys.exit(1)
    else:
        print("PASSED: Round-trip latency is within budget")


if __name__ == "__main__":
    benchmark(int(sys.argv[1]) if len(sys.argv) > 1 else 2000)
