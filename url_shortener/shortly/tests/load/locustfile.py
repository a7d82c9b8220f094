from locust import HttpUser, task, between, events
import random
import string
import time
from datetime import datetime

results = {
    "ShortenUser": {"response_times": [], "total_time": 0, "request_count": 0},
    "RedirectUser": {"response_times": [], "total_time": 0, "request_count": 0}
}

def percentile(sorted_times, q):
    return sorted_times[min(int(len(sorted_times) * q), len(sorted_times) - 1)]

def record(user_type, elapsed):
    results[user_type]["response_times"].append(elapsed)
    results[user_type]["total_time"] += elapsed
    results[user_type]["request_count"] += 1

@events.test_start.add_listener
def on_test_start(environment, **kwargs):
    print("Начало нагрузочного тестирования сокращения и переходов...")

@events.test_stop.add_listener
def on_test_stop(environment, **kwargs):
    print("\n=== Результаты нагрузочного тестирования ===")

    for user_type, data in results.items():
        if data["request_count"] > 0:
            avg_time = data["total_time"] / data["request_count"]
            print(f"\n{user_type}:")
            print(f"Общее количество запросов: {data['request_count']}")
            print(f"Среднее время ответа: {avg_time:.4f} сек")

            sorted_times = sorted(data["response_times"])
            for label, q in (("P50", 0.5), ("P95", 0.95), ("P99", 0.99)):
                print(f"{label}: {percentile(sorted_times, q):.4f} сек")


class ShortenUser(HttpUser):
    wait_time = between(0.5, 1.5)

    def on_start(self):
        # Хранилище для коротких кодов
        self.short_codes = []

    @task(3)
    def create_short_link(self):
        # Генерация случайного URL
        random_path = ''.join(random.choices(string.ascii_lowercase + string.digits, k=8))
        original_url = f"https://example.com/load/{random_path}/{datetime.now().timestamp()}"

        create_start = time.time()
        response = self.client.post("/api/shorten", json={"url": original_url})
        record("ShortenUser", time.time() - create_start)

        if response.status_code == 201:
            self.short_codes.append(response.json()["shortCode"])

            # Ограничение количества хранимых кодов
            if len(self.short_codes) > 20:
                self.short_codes = self.short_codes[-20:]

    @task(1)
    def view_analytics(self):
        if self.short_codes:
            short_code = random.choice(self.short_codes)
            self.client.get(f"/api/analytics/{short_code}", name="/api/analytics/[code]")


class RedirectUser(HttpUser):
    wait_time = between(0.5, 1.5)

    def on_start(self):
        # Несколько фиксированных ссылок, по которым идут все переходы
        self.short_codes = []
        for i in range(5):
            response = self.client.post(
                "/api/shorten",
                json={"url": f"https://example.com/hot/page{i}"}
            )
            if response.status_code == 201:
                self.short_codes.append(response.json()["shortCode"])

    @task
    def follow_link(self):
        if self.short_codes:
            # Конкурентные переходы по одной ссылке проверяют запись аналитики
            short_code = random.choice(self.short_codes)

            access_start = time.time()
            self.client.get(f"/{short_code}", allow_redirects=False, name="/[code]")
            record("RedirectUser", time.time() - access_start)
