from fleet_admin.routes.relay import ConnectionManager, relay_message


def test_known_types_pass_through():
    message = relay_message('{"type": "position-update", "truckId": "T-001", "lat": 14.6}')
    assert message == {"type": "position-update", "truckId": "T-001", "lat": 14.6}


def test_unknown_payloads_are_wrapped():
    assert relay_message('{"type": "chat", "text": "hi"}') == {
        "type": "message",
        "payload": {"type": "chat", "text": "hi"},
    }
    assert relay_message("[1, 2]") == {"type": "message", "payload": [1, 2]}
    assert relay_message("not json") == {"type": "message", "payload": "not json"}


def test_manager_remembers_client_ids_only_for_announcements():
    manager = ConnectionManager()
    socket = object()

    manager.remember(socket, {"type": "position-update", "clientId": "ignored"})
    assert manager.disconnect(socket) is None

    manager.remember(socket, {"type": "client-hello", "clientId": "tablet-7"})
    assert manager.disconnect(socket) == "tablet-7"


def test_messages_fan_out_and_stop_is_broadcast_on_disconnect(client):
    with client.websocket_connect("/ws") as dashboard:
        with client.websocket_connect("/ws") as tablet:
            tablet.send_text('{"type": "client-register", "clientId": "tablet-7"}')
            assert dashboard.receive_json() == {"type": "client-register", "clientId": "tablet-7"}
            assert tablet.receive_json() == {"type": "client-register", "clientId": "tablet-7"}

            dashboard.send_text("ping")
            assert tablet.receive_json() == {"type": "message", "payload": "ping"}
            assert dashboard.receive_json() == {"type": "message", "payload": "ping"}

        assert dashboard.receive_json() == {"type": "client-stop", "clientId": "tablet-7"}
