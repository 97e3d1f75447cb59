"""Protobuf messages for the ratls.GrSecret service (see ratls.proto)."""
from google.protobuf import descriptor_pb2
from google.protobuf import descriptor_pool
from google.protobuf import message_factory

PROTO_PACKAGE = "ratls"
SERVICE_NAME = f"{PROTO_PACKAGE}.GrSecret"
GET_SECRET_METHOD = f"/{SERVICE_NAME}/GetSecret"

_Field = descriptor_pb2.FieldDescriptorProto


def _build_file_descriptor() -> descriptor_pb2.FileDescriptorProto:
    file_proto = descriptor_pb2.FileDescriptorProto(
        name="ratls.proto",
        package=PROTO_PACKAGE,
        syntax="proto3",
    )

    request = file_proto.message_type.add(name="SecretRequest")
    request.field.add(name="name", number=1, type=_Field.TYPE_STRING, label=_Field.LABEL_OPTIONAL)

    reply = file_proto.message_type.add(name="SecretReply")
    reply.field.add(name="secret", number=1, type=_Field.TYPE_STRING, label=_Field.LABEL_OPTIONAL)

    service = file_proto.service.add(name="GrSecret")
    service.method.add(
        name="GetSecret",
        input_type=f".{PROTO_PACKAGE}.SecretRequest",
        output_type=f".{PROTO_PACKAGE}.SecretReply",
    )
    return file_proto


_pool = descriptor_pool.DescriptorPool()
_pool.AddSerializedFile(_build_file_descriptor().SerializeToString())

SecretRequest = message_factory.GetMessageClass(
    _pool.FindMessageTypeByName(f"{PROTO_PACKAGE}.SecretRequest")
)
SecretReply = message_factory.GetMessageClass(
    _pool.FindMessageTypeByName(f"{PROTO_PACKAGE}.SecretReply")
)
