import uuid

from locust import HttpUser, between, task

ANSWER = (
    "Situation: our unit had a backlog of 400 grant applications. Task: I was asked to clear it "
    "within six weeks. Action: I split the work by complexity, trained two colleagues and set up "
    "a weekly tracker for the principal officer. Result: the backlog was cleared in five weeks."
)


class InterviewApiUser(HttpUser):
    """
    Registers a fresh user, then fires interview starts from it. On the free
    plan only the first start may succeed; every other one must be refused
    with FreeLimitReached, which makes concurrent starts easy to check.
    """
    wait_time = between(1, 5)
    interview_id = None
    question_ids = ()

    def on_start(self):
        username = f"load-{uuid.uuid4().hex[:12]}"
        self.client.post("/api/auth/register/", json={
            "username": username,
            "email": f"{username}@example.com",
            "password": "load-test-password",
        })

    def _headers(self):
        return {"X-CSRFToken": self.client.cookies.get("csrftoken", "")}

    @task(3)
    def start_interview(self):
        with self.client.post(
            "/api/interviews/start/",
            json={"grade": "heo", "framework": "old"},
            headers=self._headers(),
            catch_response=True,
        ) as response:
            if response.status_code == 201:
                data = response.json()
                self.interview_id = data["interview"]["id"]
                self.question_ids = [q["id"] for q in data["questions"]]
                response.success()
            elif response.status_code == 403 and response.json().get("upgrade_required"):
                response.success()
            else:
                response.failure(f"Unexpected start response: {response.status_code}")

    @task(2)
    def submit_answer(self):
        if not self.interview_id:
            return
        self.client.post("/api/answers/", json={
            "interview_id": self.interview_id,
            "question_id": self.question_ids[0],
            "answer_text": ANSWER,
            "time_spent_seconds": 120,
        }, headers=self._headers())

    @task
    def get_interview(self):
        if self.interview_id:
            self.client.get(f"/api/interviews/{self.interview_id}/", name="/api/interviews/[id]/")
        self.client.get("/api/subscription/")
