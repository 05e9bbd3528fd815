# cli - ec2-inventory 명령줄 인터페이스 (click, rich)
