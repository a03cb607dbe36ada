from .models import (
    Message,
    MessageStore,
    Subscriber,
    SubscriberState,
    ClientRegistry,
    Broadcaster,
    keepalive_loop,
)
