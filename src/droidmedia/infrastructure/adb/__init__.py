from droidmedia.infrastructure.adb.gateway import AdbGateway
