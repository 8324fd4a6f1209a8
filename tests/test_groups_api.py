def _contribute(client, group_id, member_id, amount, category=None):
    resp = client.post(
        "/api/contributions/",
        json={"group_id": group_id, "member_id": member_id, "amount": amount, "category": category},
    )
    assert resp.status_code == 201, resp.text
    return resp.json()


def test_healthcheck(client):
    resp = client.get("/")
    assert resp.status_code == 200
    assert resp.json()["docs"] == "/docs"


def test_create_group_enrols_owner_and_members(client, trip):
    group = trip["group"]
    member_ids = {m["user"]["id"] for m in group["members"]}

    assert group["type"] == "Friends"
    assert group["completed"] is False
    assert member_ids == {trip["alice"]["id"], trip["bob"]["id"], trip["carol"]["id"]}

    resp = client.get("/api/groups/", params={"user_id": trip["bob"]["id"]})
    assert [g["id"] for g in resp.json()] == [group["id"]]


def test_create_group_with_unknown_owner(client):
    resp = client.post("/api/groups/", json={"name": "Ghosts", "owner_id": 999})
    assert resp.status_code == 404


def test_settle_up_counts_idle_members(client, trip):
    gid = trip["group"]["id"]
    alice, bob, carol = trip["alice"]["id"], trip["bob"]["id"], trip["carol"]["id"]
    _contribute(client, gid, alice, 1500, "Food")
    _contribute(client, gid, bob, 1200, "Transport")

    resp = client.get(f"/api/groups/{gid}/settle-up")
    assert resp.status_code == 200
    plan = resp.json()

    balances = {b["user_id"]: b for b in plan["balances"]}
    assert balances[alice]["balance"] == 600
    assert balances[bob]["balance"] == 300
    assert balances[carol]["balance"] == -900
    assert balances[carol]["name"] == "Carol"

    assert [(t["from_user_id"], t["to_user_id"], t["amount"]) for t in plan["transfers"]] == [
        (carol, alice, 600),
        (carol, bob, 300),
    ]
    assert plan["transfers"][0]["from_name"] == "Carol"


def test_settle_up_without_idle_members(client, trip, make_user):
    gid = trip["group"]["id"]
    alice, bob = trip["alice"]["id"], trip["bob"]["id"]
    _contribute(client, gid, alice, 1500)
    _contribute(client, gid, bob, 1200)

    # a contribution in another group must not leak in
    dave = make_user("Dave")
    other = client.post("/api/groups/", json={"name": "Trip to Goa", "owner_id": dave["id"]}).json()
    _contribute(client, other["id"], dave["id"], 800)

    resp = client.get(f"/api/groups/{gid}/settle-up", params={"include_idle": False})
    plan = resp.json()

    assert {b["user_id"] for b in plan["balances"]} == {alice, bob}
    assert plan["transfers"] == [
        {"from_user_id": bob, "to_user_id": alice, "from_name": "Bob", "to_name": "Alice", "amount": 150.0},
    ]


def test_balances_endpoint(client, trip):
    gid = trip["group"]["id"]
    _contribute(client, gid, trip["alice"]["id"], 100)

    resp = client.get(f"/api/groups/{gid}/balances")
    assert resp.status_code == 200
    balances = {b["user_id"]: b for b in resp.json()}
    assert balances[trip["alice"]["id"]]["balance"] == 66.67
    assert balances[trip["bob"]["id"]]["balance"] == -33.33
    assert balances[trip["bob"]["id"]]["fair_share"] == 33.33


def test_empty_group_has_nothing_to_settle(client, trip):
    gid = trip["group"]["id"]
    plan = client.get(f"/api/groups/{gid}/settle-up").json()
    assert plan["transfers"] == []
    assert all(b["balance"] == 0 for b in plan["balances"])


def test_settle_up_unknown_group(client):
    assert client.get("/api/groups/12345/settle-up").status_code == 404


def test_contribution_guards(client, trip, make_user):
    gid = trip["group"]["id"]
    stranger = make_user("Mallory")

    resp = client.post("/api/contributions/", json={"group_id": gid, "member_id": stranger["id"], "amount": 10})
    assert resp.status_code == 403

    resp = client.post("/api/contributions/", json={"group_id": gid, "member_id": trip["alice"]["id"], "amount": -10})
    assert resp.status_code == 422


def test_deleted_contribution_is_ignored(client, trip):
    gid = trip["group"]["id"]
    c = _contribute(client, gid, trip["alice"]["id"], 300)

    assert client.delete(f"/api/contributions/{c['id']}").status_code == 204
    assert client.get(f"/api/contributions/group/{gid}").json() == []
    assert client.get(f"/api/groups/{gid}/settle-up").json()["transfers"] == []
    assert client.delete(f"/api/contributions/{c['id']}").status_code == 404


def test_summary(client, trip):
    gid = trip["group"]["id"]
    _contribute(client, gid, trip["alice"]["id"], 1500, "Food")
    _contribute(client, gid, trip["bob"]["id"], 1200, "Transport")
    _contribute(client, gid, trip["bob"]["id"], 50)

    summary = client.get(f"/api/groups/{gid}/summary").json()
    assert summary["total_spent"] == 2750
    assert summary["contributions_count"] == 3
    assert summary["by_category"] == {"Food": 1500, "Transport": 1200, "Uncategorized": 50}
    assert len(summary["recent"]) == 3


def test_removed_member_leaves_roster(client, trip):
    gid = trip["group"]["id"]
    carol = trip["carol"]["id"]

    assert client.delete(f"/api/groups/{gid}/members/{carol}").status_code == 204
    _contribute(client, gid, trip["alice"]["id"], 90)
    balances = client.get(f"/api/groups/{gid}/balances").json()
    assert carol not in {b["user_id"] for b in balances}

    resp = client.delete(f"/api/groups/{gid}/members/{trip['alice']['id']}")
    assert resp.status_code == 409

    resp = client.post(f"/api/groups/{gid}/members", json={"user_id": carol})
    assert resp.status_code == 201
    assert resp.json()["user"]["id"] == carol


def test_member_with_debt_cannot_be_removed(client, trip):
    gid = trip["group"]["id"]
    carol = trip["carol"]["id"]
    _contribute(client, gid, trip["alice"]["id"], 90)
    before = client.get(f"/api/groups/{gid}/settle-up").json()

    resp = client.delete(f"/api/groups/{gid}/members/{carol}")
    assert resp.status_code == 409
    assert client.get(f"/api/groups/{gid}/settle-up").json() == before


def test_member_settled_by_payment_cannot_shrink_roster(client, trip):
    gid = trip["group"]["id"]
    alice, carol = trip["alice"]["id"], trip["carol"]["id"]
    _contribute(client, gid, alice, 90)
    payment = client.post(
        "/api/payments/",
        json={"group_id": gid, "sender_id": carol, "receiver_id": alice, "amount": 30},
    ).json()
    client.put(f"/api/payments/{payment['id']}/settle", json={"status": "Success", "mode": "UPI"})

    balances = {b["user_id"]: b["balance"] for b in client.get(f"/api/groups/{gid}/balances").json()}
    assert balances[carol] == 0
    # dropping Carol would shrink the fair share the others owe
    assert client.delete(f"/api/groups/{gid}/members/{carol}").status_code == 409


def test_settled_member_can_be_removed(client, trip):
    gid = trip["group"]["id"]
    for member in ("alice", "bob", "carol"):
        _contribute(client, gid, trip[member]["id"], 30)

    assert client.delete(f"/api/groups/{gid}/members/{trip['carol']['id']}").status_code == 204
    plan = client.get(f"/api/groups/{gid}/settle-up").json()
    assert plan["transfers"] == []
    assert {b["user_id"] for b in plan["balances"]} == {trip[m]["id"] for m in ("alice", "bob", "carol")}


def test_complete_requires_no_debts(client, trip):
    gid = trip["group"]["id"]
    _contribute(client, gid, trip["alice"]["id"], 30)

    resp = client.patch(f"/api/groups/{gid}", json={"completed": True})
    assert resp.status_code == 409


def test_soft_deleted_group_is_hidden(client, trip):
    gid = trip["group"]["id"]
    assert client.delete(f"/api/groups/{gid}").status_code == 204
    assert client.get(f"/api/groups/{gid}").status_code == 404
    # plan stays readable for history
    assert client.get(f"/api/groups/{gid}/settle-up").status_code == 200


def test_group_with_debts_cannot_be_deleted(client, trip):
    gid = trip["group"]["id"]
    _contribute(client, gid, trip["alice"]["id"], 90)

    assert client.delete(f"/api/groups/{gid}").status_code == 409
    assert client.get(f"/api/groups/{gid}").status_code == 200


def test_deleted_group_rejects_contributions(client, trip):
    gid = trip["group"]["id"]
    assert client.delete(f"/api/groups/{gid}").status_code == 204

    resp = client.post("/api/contributions/", json={"group_id": gid, "member_id": trip["alice"]["id"], "amount": 10})
    assert resp.status_code == 409
