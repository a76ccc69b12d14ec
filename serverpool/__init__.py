"""ServerPool: 게임 서버와 공유 리소스 풀을 관리하는 백엔드."""

__version__ = "0.1.0"
